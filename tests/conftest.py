"""Shared pytest fixtures for grocery-list tests."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from grocery_list.credentials import (
    IMAGE_CREDENTIAL,
    SUGGESTION_CREDENTIAL,
    CredentialGate,
    MemoryCredentialStore,
)
from grocery_list.images import ImageClient
from grocery_list.store import ItemStore
from grocery_list.suggestions import SuggestionClient


@pytest.fixture
def store():
    """Empty item store."""
    return ItemStore()


@pytest.fixture
def gate():
    """Credential gate with both service keys configured."""
    return CredentialGate(
        MemoryCredentialStore(
            {
                SUGGESTION_CREDENTIAL: "sk-or-test",
                IMAGE_CREDENTIAL: "pexels-test",
            }
        )
    )


@pytest.fixture
def suggestion_client():
    """Mock suggestion client."""
    return AsyncMock(spec=SuggestionClient)


@pytest.fixture
def image_client():
    """Mock image client."""
    return AsyncMock(spec=ImageClient)


@pytest.fixture
def mock_response():
    """Factory for mock httpx responses."""

    def _make_response(json_data=None, status_code=200, json_error=None):
        response = MagicMock()
        response.status_code = status_code
        if json_error is not None:
            response.json.side_effect = json_error
        else:
            response.json.return_value = json_data
        return response

    return _make_response


@pytest.fixture
def mock_http():
    """Patch httpx.AsyncClient and hand back the client used inside ``async with``."""
    with patch("httpx.AsyncClient") as MockClient:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.__aexit__.return_value = None
        MockClient.return_value = mock_client
        yield mock_client
