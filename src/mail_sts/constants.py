"""Constants and default values used across the library."""

# DNS Constants
DEFAULT_DNS_TIMEOUT = 5.0  # DNS query timeout in seconds
DEFAULT_DNS_PUBLIC_SERVERS = ["8.8.8.8", "8.8.4.4", "1.1.1.1"]  # Google and Cloudflare DNS
DEFAULT_EDNS_PAYLOAD = 1232  # Large enough for DNSSEC answers without fragmentation
RCODE_NXDOMAIN = "NXDOMAIN"  # DnsError.rcode for names that do not exist

# Discovery record locations (RFC 8461 section 3.1, RFC 8460 section 3)
STS_RECORD_PREFIX = "_mta-sts"
TLSRPT_RECORD_PREFIX = "_smtp._tls"

# Discovery record version tags
STS_VERSION = "STSv1"
TLSRPT_VERSION = "TLSRPTv1"
STS_ID_MAX_LENGTH = 32

# Policy retrieval (RFC 8461 section 3.3)
POLICY_HOST_PREFIX = "mta-sts"
POLICY_WELL_KNOWN_PATH = "/.well-known/mta-sts.txt"
POLICY_CONTENT_TYPE = "text/plain"
POLICY_MAX_AGE_LIMIT = 31557600  # One year, upper bound for max_age
ALLOWED_POLICY_SCHEMES = ("https",)

# HTTP Constants
DEFAULT_AGENT_TIMEOUT = 60.0  # One minute, as suggested for policy retrieval
DEFAULT_MAX_POLICY_SIZE = 65536  # Maximum policy document size in bytes
DEFAULT_USER_AGENT = "mail-sts/0.1.0"

# TLSRPT reporting URI schemes (RFC 8460 section 3)
TLSRPT_URI_SCHEMES = ("mailto", "https")
