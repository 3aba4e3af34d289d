from __future__ import annotations

"""structerr/tls.py

TLS record and X.509 certificate failures.

`ssl.SSLCertVerificationError` only exposes an OpenSSL verify code and a
message. The classes below name the distinct verification outcomes so they
can be reported under stable tags; `VERIFY_CODE_KINDS` maps OpenSSL codes
onto them for errors raised by the `ssl` module itself.
"""

from types import MappingProxyType

RECORD_HEADER_LEN = 5


class RecordHeaderError(Exception):
    """The first bytes read did not look like a TLS record header."""

    def __init__(self, msg: str, record_header: bytes):
        super().__init__(msg, record_header)
        self.msg = msg
        self.record_header = bytes(record_header[:RECORD_HEADER_LEN]).ljust(
            RECORD_HEADER_LEN, b"\x00"
        )

    def __str__(self) -> str:
        return f"tls: {self.msg}"


class X509Error(Exception):
    """Base for certificate verification failures."""


class CertificateInvalidError(X509Error):
    def __init__(self, reason: str, detail: str = ""):
        super().__init__(reason, detail)
        self.reason = reason
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"x509: certificate is not valid: {self.reason}: {self.detail}"
        return f"x509: certificate is not valid: {self.reason}"


class ConstraintViolationError(X509Error):
    def __str__(self) -> str:
        return "x509: invalid signature: parent certificate cannot sign this kind of certificate"


class HostnameError(X509Error):
    def __init__(self, host: str, detail: str = ""):
        super().__init__(host, detail)
        self.host = host
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return self.detail
        return f"x509: certificate is not valid for {self.host}"


class InsecureAlgorithmError(X509Error):
    def __init__(self, algorithm: str):
        super().__init__(algorithm)
        self.algorithm = algorithm

    def __str__(self) -> str:
        return f"x509: cannot verify signature: insecure algorithm {self.algorithm}"


class SystemRootsError(X509Error):
    def __init__(self, err: BaseException | None = None):
        super().__init__(err)
        self.err = err

    def __str__(self) -> str:
        msg = "x509: failed to load system roots and no roots provided"
        if self.err is not None:
            msg += f"; {self.err}"
        return msg


class UnhandledCriticalExtension(X509Error):
    def __str__(self) -> str:
        return "x509: unhandled critical extension"


class UnknownAuthorityError(X509Error):
    def __init__(self, issuer: str = ""):
        super().__init__(issuer)
        self.issuer = issuer

    def __str__(self) -> str:
        msg = "x509: certificate signed by unknown authority"
        if self.issuer:
            msg += f" (possibly because of issuer {self.issuer!r})"
        return msg


class IncorrectPasswordError(ValueError):
    def __init__(self, msg: str = "x509: decryption password incorrect"):
        super().__init__(msg)


class UnsupportedAlgorithmError(ValueError):
    def __init__(self, msg: str = "x509: cannot verify signature: algorithm unimplemented"):
        super().__init__(msg)


# OpenSSL X509_V_ERR_* codes
VERIFY_CODE_KINDS: MappingProxyType[int, type[X509Error]] = MappingProxyType(
    {
        2: UnknownAuthorityError,  # UNABLE_TO_GET_ISSUER_CERT
        7: CertificateInvalidError,  # CERT_SIGNATURE_FAILURE
        9: CertificateInvalidError,  # CERT_NOT_YET_VALID
        10: CertificateInvalidError,  # CERT_HAS_EXPIRED
        18: UnknownAuthorityError,  # DEPTH_ZERO_SELF_SIGNED_CERT
        19: UnknownAuthorityError,  # SELF_SIGNED_CERT_IN_CHAIN
        20: UnknownAuthorityError,  # UNABLE_TO_GET_ISSUER_CERT_LOCALLY
        21: UnknownAuthorityError,  # UNABLE_TO_VERIFY_LEAF_SIGNATURE
        23: CertificateInvalidError,  # CERT_REVOKED
        24: CertificateInvalidError,  # INVALID_CA
        25: CertificateInvalidError,  # PATH_LENGTH_EXCEEDED
        26: CertificateInvalidError,  # INVALID_PURPOSE
        27: UnknownAuthorityError,  # CERT_UNTRUSTED
        28: CertificateInvalidError,  # CERT_REJECTED
        34: UnhandledCriticalExtension,  # UNHANDLED_CRITICAL_EXTENSION
        37: ConstraintViolationError,  # KEYUSAGE_NO_CERTSIGN
        47: CertificateInvalidError,  # PERMITTED_VIOLATION
        48: CertificateInvalidError,  # EXCLUDED_VIOLATION
        62: HostnameError,  # HOSTNAME_MISMATCH
        63: HostnameError,  # EMAIL_MISMATCH
        64: HostnameError,  # IP_ADDRESS_MISMATCH
        66: InsecureAlgorithmError,  # EE_KEY_TOO_SMALL
        67: InsecureAlgorithmError,  # CA_KEY_TOO_SMALL
        68: InsecureAlgorithmError,  # CA_MD_TOO_WEAK
    }
)
