"""
Unit tests for ProfileService.
The repository and password encoder are mocked so only the attribute mapping
and credential checks are exercised.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from couch_profile.core.exceptions import (
    AccountNotFoundError,
    BadCredentialsError,
    MultipleAccountsFoundError,
    ProfileServiceConfigurationError,
)
from couch_profile.models.profile import UserProfile
from couch_profile.services.profile_service import ProfileService
from tests.factories import UserProfileFactory


class TestProfileService:
    """Test suite for ProfileService class."""

    @pytest.fixture
    def mock_repository(self):
        repository = AsyncMock()
        repository.read.return_value = []
        return repository

    @pytest.fixture
    def mock_encoder(self):
        encoder = MagicMock()
        encoder.encode.side_effect = lambda password: f"hashed:{password}"
        encoder.matches.side_effect = lambda plain, encoded: encoded == f"hashed:{plain}"
        encoder.needs_update.return_value = False
        return encoder

    @pytest.fixture
    def service(self, mock_repository, mock_encoder):
        return ProfileService(mock_repository, mock_encoder)

    @pytest.fixture
    def restricted_service(self, mock_repository, mock_encoder):
        return ProfileService(mock_repository, mock_encoder, attributes=["email"])

    @pytest.mark.parametrize("repository,encoder", [(None, MagicMock()), (AsyncMock(), None)])
    def test_requires_collaborators(self, repository, encoder):
        with pytest.raises(ProfileServiceConfigurationError):
            ProfileService(repository, encoder)

    @pytest.mark.asyncio
    async def test_create_inserts_attributes_with_encoded_password(self, service, mock_repository):
        profile = UserProfileFactory(id="user-1", linked_id="ext-1", attributes={
            "username": "alice",
            "email": "alice@example.com",
        })

        await service.create(profile, "S3cret")

        mock_repository.insert.assert_awaited_once_with({
            "_id": "user-1",
            "linkedid": "ext-1",
            "username": "alice",
            "password": "hashed:S3cret",
            "email": "alice@example.com",
        })

    @pytest.mark.asyncio
    async def test_create_requires_password(self, service, mock_repository):
        with pytest.raises(ValueError):
            await service.create(UserProfileFactory(), "")

        mock_repository.insert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_requires_username(self, service, mock_repository):
        profile = UserProfile(id="user-1", attributes={"email": "alice@example.com"})

        with pytest.raises(ValueError):
            await service.create(profile, "S3cret")

    @pytest.mark.asyncio
    async def test_create_drops_unlisted_attributes(self, restricted_service, mock_repository):
        profile = UserProfileFactory(id="user-1", attributes={
            "username": "alice",
            "email": "alice@example.com",
            "shoe_size": 38,
        })

        await restricted_service.create(profile, "S3cret")

        stored = mock_repository.insert.await_args.args[0]
        assert "shoe_size" not in stored
        assert stored["email"] == "alice@example.com"

    @pytest.mark.asyncio
    async def test_create_never_stores_attribute_named_like_revision(self, service, mock_repository):
        profile = UserProfileFactory(id="user-1", attributes={"username": "alice", "_rev": "9-zzz"})

        await service.create(profile, "S3cret")

        assert "_rev" not in mock_repository.insert.await_args.args[0]

    @pytest.mark.asyncio
    async def test_update_without_password_keeps_stored_password(self, service, mock_repository):
        profile = UserProfileFactory(id="user-1", attributes={"username": "alice"})

        await service.update(profile)

        stored = mock_repository.update.await_args.args[0]
        assert "password" not in stored
        assert stored["_id"] == "user-1"

    @pytest.mark.asyncio
    async def test_update_with_password(self, service, mock_repository):
        profile = UserProfileFactory(id="user-1", attributes={"username": "alice"})

        await service.update(profile, "N3w")

        assert mock_repository.update.await_args.args[0]["password"] == "hashed:N3w"

    @pytest.mark.asyncio
    async def test_remove_deletes_by_id(self, service, mock_repository):
        await service.remove(UserProfileFactory(id="user-1"))

        mock_repository.delete_by_id.assert_awaited_once_with("user-1")

    @pytest.mark.asyncio
    async def test_remove_by_id_requires_id(self, service):
        with pytest.raises(ValueError):
            await service.remove_by_id("")

    @pytest.mark.asyncio
    async def test_find_by_id_reads_all_attributes_by_default(self, service, mock_repository):
        mock_repository.read.return_value = [{
            "_id": "user-1",
            "_rev": "2-abc",
            "username": "alice",
            "password": "hashed:S3cret",
            "email": "alice@example.com",
        }]

        profile = await service.find_by_id("user-1")

        mock_repository.read.assert_awaited_once_with(None, "_id", "user-1")
        assert profile.id == "user-1"
        assert profile.username == "alice"
        assert profile.attributes == {"username": "alice", "email": "alice@example.com"}

    @pytest.mark.asyncio
    async def test_find_by_id_with_attribute_list(self, restricted_service, mock_repository):
        await restricted_service.find_by_id("user-1")

        mock_repository.read.assert_awaited_once_with(
            ["_id", "linkedid", "username", "email"], "_id", "user-1"
        )

    @pytest.mark.asyncio
    async def test_find_by_id_not_found(self, service):
        assert await service.find_by_id("ghost") is None

    @pytest.mark.asyncio
    async def test_find_by_id_ignores_rows_without_id(self, service, mock_repository):
        mock_repository.read.return_value = [{"db_name": "profiles", "doc_count": 3}]

        assert await service.find_by_id("user-1") is None

    @pytest.mark.asyncio
    async def test_validate_ignores_rows_without_id(self, service, mock_repository):
        mock_repository.read.return_value = [
            {"username": "alice", "password": "hashed:S3cret"},
            {"_id": "user-1", "username": "alice", "password": "hashed:S3cret"},
        ]

        profile = await service.validate("alice", "S3cret")

        assert profile.id == "user-1"

    @pytest.mark.asyncio
    async def test_find_by_linked_id(self, service, mock_repository):
        mock_repository.read.return_value = [{"_id": "user-1", "linkedid": "ext-1", "username": "alice"}]

        profile = await service.find_by_linked_id("ext-1")

        mock_repository.read.assert_awaited_once_with(None, "linkedid", "ext-1")
        assert profile.linked_id == "ext-1"

    @pytest.mark.asyncio
    async def test_validate_success(self, restricted_service, mock_repository):
        mock_repository.read.return_value = [{
            "_id": "user-1",
            "username": "alice",
            "password": "hashed:S3cret",
        }]

        profile = await restricted_service.validate("alice", "S3cret")

        mock_repository.read.assert_awaited_once_with(
            ["_id", "linkedid", "username", "email", "password"], "username", "alice"
        )
        assert profile.id == "user-1"
        assert "password" not in profile.attributes
        mock_repository.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_validate_rehashes_outdated_password(self, service, mock_repository, mock_encoder):
        mock_repository.read.return_value = [{"_id": "user-1", "username": "alice", "password": "hashed:S3cret"}]
        mock_encoder.needs_update.return_value = True

        profile = await service.validate("alice", "S3cret")

        mock_encoder.needs_update.assert_called_once_with("hashed:S3cret")
        mock_repository.update.assert_awaited_once_with({"_id": "user-1", "password": "hashed:S3cret"})
        assert profile.id == "user-1"

    @pytest.mark.asyncio
    async def test_validate_unknown_account(self, service):
        with pytest.raises(AccountNotFoundError):
            await service.validate("nobody", "S3cret")

    @pytest.mark.asyncio
    async def test_validate_multiple_accounts(self, service, mock_repository):
        mock_repository.read.return_value = [
            {"_id": "user-1", "username": "alice", "password": "hashed:S3cret"},
            {"_id": "user-2", "username": "alice", "password": "hashed:S3cret"},
        ]

        with pytest.raises(MultipleAccountsFoundError):
            await service.validate("alice", "S3cret")

    @pytest.mark.asyncio
    async def test_validate_bad_password(self, service, mock_repository):
        mock_repository.read.return_value = [{"_id": "user-1", "username": "alice", "password": "hashed:S3cret"}]

        with pytest.raises(BadCredentialsError):
            await service.validate("alice", "wrong")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username,password", [("", "S3cret"), ("alice", ""), (None, None)])
    async def test_validate_blank_credentials(self, service, mock_repository, username, password):
        with pytest.raises(BadCredentialsError):
            await service.validate(username, password)

        mock_repository.read.assert_not_awaited()
