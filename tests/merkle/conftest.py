import pytest

from merklebatch.core.hashing import get_hasher
from merklebatch.core.settings import get_settings
from merklebatch.signing.ed25519 import Ed25519BatchSigner, Ed25519BatchVerifier


@pytest.fixture
def hasher():
    return get_hasher("sha256")


@pytest.fixture
def signer():
    return Ed25519BatchSigner.generate()


@pytest.fixture
def verifier(signer):
    v = Ed25519BatchVerifier()
    v.add_from_signer(signer)
    return v


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
