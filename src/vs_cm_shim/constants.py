"""Constants for the VirtualServer cert-manager shim."""

CONTROLLER_NAME = "vs-cm-shim"

# VirtualServer (source resource)
VS_GROUP = "k8s.nginx.org"
VS_VERSION = "v1"
VS_API_VERSION = f"{VS_GROUP}/{VS_VERSION}"
VS_PLURAL = "virtualservers"
KIND_VIRTUAL_SERVER = "VirtualServer"

# Certificate (target resource)
CM_GROUP = "cert-manager.io"
CM_VERSION = "v1"
CM_API_VERSION = f"{CM_GROUP}/{CM_VERSION}"
CERTIFICATE_PLURAL = "certificates"
KIND_CERTIFICATE = "Certificate"

# Issuer kinds
ISSUER_KIND = "Issuer"
CLUSTER_ISSUER_KIND = "ClusterIssuer"

# Annotation keys used as the translation intermediate
ANNOTATION_COMMON_NAME = f"{CM_GROUP}/common-name"
ANNOTATION_DURATION = f"{CM_GROUP}/duration"
ANNOTATION_RENEW_BEFORE = f"{CM_GROUP}/renew-before"
ANNOTATION_USAGES = f"{CM_GROUP}/usages"
ANNOTATION_ISSUER = f"{CM_GROUP}/issuer"
ANNOTATION_CLUSTER_ISSUER = f"{CM_GROUP}/cluster-issuer"
ANNOTATION_ISSUER_KIND = f"{CM_GROUP}/issuer-kind"
ANNOTATION_ISSUER_GROUP = f"{CM_GROUP}/issuer-group"

# Key usages
DEFAULT_KEY_USAGES = ("digital signature", "key encipherment")

KEY_USAGES = frozenset({
    "signing",
    "digital signature",
    "content commitment",
    "key encipherment",
    "key agreement",
    "data encipherment",
    "cert sign",
    "crl sign",
    "encipher only",
    "decipher only",
})

EXT_KEY_USAGES = frozenset({
    "any",
    "server auth",
    "client auth",
    "code signing",
    "email protection",
    "s/mime",
    "ipsec end system",
    "ipsec tunnel",
    "ipsec user",
    "timestamping",
    "ocsp signing",
    "microsoft sgc",
    "netscape sgc",
})

# Event Reasons
EVENT_REASON_BAD_CONFIG = "BadConfig"
EVENT_REASON_CREATE_CERTIFICATE = "CreateCertificate"
EVENT_REASON_UPDATE_CERTIFICATE = "UpdateCertificate"
EVENT_REASON_DELETE_CERTIFICATE = "DeleteCertificate"
EVENT_REASON_FOREIGNLY_OWNED = "ForeignlyOwned"

# Event types
EVENT_TYPE_NORMAL = "Normal"
EVENT_TYPE_WARNING = "Warning"
