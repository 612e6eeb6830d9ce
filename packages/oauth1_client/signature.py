"""OAuth 1.0 signature methods (RFC 5849 section 3.4)."""

import hashlib
import hmac
import typing as t
from abc import ABC, abstractmethod
from base64 import b64decode, b64encode

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.x509 import load_pem_x509_certificate

from oauth1_client.exceptions import SignatureError

if t.TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

KeyData = t.Union[str, bytes]


def _to_bytes(value: KeyData) -> bytes:
    return value.encode('utf-8') if isinstance(value, str) else value


class SignatureMethod(ABC):
    """Signature algorithm used to sign OAuth 1.0 requests.

    Implementations are stateless with respect to individual requests; the same
    instance may be shared between clients.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Canonical method name sent as ``oauth_signature_method``."""

    @abstractmethod
    def generate(self, base_string: str, key: str) -> str:
        """Generate signature for the given base string.

        Args:
            base_string: Signature base string.
            key: Signature key (``consumer_secret&token_secret``).

        Returns:
            Signature string.

        Raises:
            SignatureError: If the key material is not usable by this method.
        """

    def verify(self, signature: str, base_string: str, key: str) -> bool:
        """Check signature by regenerating it and comparing in constant time."""
        expected = self.generate(base_string, key)
        return hmac.compare_digest(_to_bytes(expected), _to_bytes(signature))


class HmacSha1Method(SignatureMethod):
    """HMAC-SHA1 signature method (RFC 5849 section 3.4.2)."""

    digestmod: t.Any = hashlib.sha1

    @property
    def name(self) -> str:
        return 'HMAC-SHA1'

    def generate(self, base_string: str, key: str) -> str:
        digest = hmac.new(_to_bytes(key), _to_bytes(base_string), self.digestmod).digest()
        return b64encode(digest).decode('ascii')


class HmacSha256Method(HmacSha1Method):
    """HMAC-SHA256 signature method, an extension supported by several providers."""

    digestmod = hashlib.sha256

    @property
    def name(self) -> str:
        return 'HMAC-SHA256'


class PlaintextMethod(SignatureMethod):
    """PLAINTEXT signature method (RFC 5849 section 3.4.4).

    The signature is the key itself, so it must only be used over TLS.
    """

    @property
    def name(self) -> str:
        return 'PLAINTEXT'

    def generate(self, base_string: str, key: str) -> str:
        return key


class RsaSha1Method(SignatureMethod):
    """RSA-SHA1 signature method (RFC 5849 section 3.4.3).

    The request is signed with the consumer's RSA private key; the signature key
    composed from the consumer and token secrets is ignored. The server verifies
    with the public key or certificate registered for the consumer.
    """

    def __init__(
        self,
        private_key: t.Optional[KeyData] = None,
        public_key: t.Optional[KeyData] = None,
        password: t.Optional[KeyData] = None,
    ) -> None:
        """Initialize RSA-SHA1 method.

        Args:
            private_key: PEM encoded private key, required for signing.
            public_key: PEM encoded public key or X.509 certificate, used by ``verify``.
            password: Password of an encrypted private key.

        Raises:
            SignatureError: If a key cannot be loaded.
        """
        self._private_key = self._load_private_key(private_key, password) if private_key is not None else None
        self._public_key = self._load_public_key(public_key) if public_key is not None else None

    @property
    def name(self) -> str:
        return 'RSA-SHA1'

    @staticmethod
    def _load_private_key(data: KeyData, password: t.Optional[KeyData]) -> 'RSAPrivateKey':
        try:
            key = serialization.load_pem_private_key(
                _to_bytes(data), password=_to_bytes(password) if password is not None else None
            )
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise SignatureError(f'Unable to load RSA private key: {e}') from e

        if not isinstance(key, rsa.RSAPrivateKey):
            raise SignatureError('Private key is not an RSA key.')
        return key

    @staticmethod
    def _load_public_key(data: KeyData) -> 'RSAPublicKey':
        raw = _to_bytes(data)
        try:
            if b'BEGIN CERTIFICATE' in raw:
                key = load_pem_x509_certificate(raw).public_key()
            else:
                key = serialization.load_pem_public_key(raw)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise SignatureError(f'Unable to load RSA public key: {e}') from e

        if not isinstance(key, rsa.RSAPublicKey):
            raise SignatureError('Public key is not an RSA key.')
        return key

    def generate(self, base_string: str, key: str) -> str:
        if self._private_key is None:
            raise SignatureError('RSA private key is required to generate RSA-SHA1 signature.')

        signature = self._private_key.sign(_to_bytes(base_string), padding.PKCS1v15(), hashes.SHA1())
        return b64encode(signature).decode('ascii')

    def verify(self, signature: str, base_string: str, key: str) -> bool:
        """Verify with the public key if one is configured, else by regenerating."""
        public_key = self._public_key
        if public_key is None and self._private_key is not None:
            public_key = self._private_key.public_key()
        if public_key is None:
            return super().verify(signature, base_string, key)

        try:
            public_key.verify(b64decode(signature), _to_bytes(base_string), padding.PKCS1v15(), hashes.SHA1())
        except (InvalidSignature, ValueError):
            return False
        return True
