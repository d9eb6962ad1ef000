from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model
from rest_framework.authtoken.models import Token

from qrgate.apps.access.services.grants import create_grant
from qrgate.apps.documents.models import Document


@pytest.fixture
def owner(db):
    return get_user_model().objects.create_user(username="owner", password="pw")


@pytest.fixture
def owner_token(owner) -> str:
    return Token.objects.create(user=owner).key


@pytest.fixture
def document(owner):
    return Document.objects.create(
        owner=owner,
        filename="contract-1.pdf",
        original_filename="contract.pdf",
        file_size=1024,
        mime_type="application/pdf",
        storage_path="documents/owner/contract-1.pdf",
    )


@pytest.fixture
def make_grant(document):
    def _make(**kwargs):
        return create_grant(kwargs.pop("document", document), **kwargs)

    return _make
