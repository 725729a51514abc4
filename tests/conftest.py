import base58
import pytest

ONES_PROGRAM_ID = base58.b58encode(bytes([1] * 32)).decode()


@pytest.fixture
def program_id():
    return ONES_PROGRAM_ID


@pytest.fixture
def program_id_bytes():
    return bytes([1] * 32)
