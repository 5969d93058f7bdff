"""
Profile service composing a profile repository and a password encoder.
Turns user profiles into attribute dictionaries for the repository and
validates username/password credentials against stored records.
"""

from typing import Any, Dict, List, Optional

import structlog

from ..core.config import Settings, get_settings
from ..core.exceptions import (
    AccountNotFoundError,
    BadCredentialsError,
    MultipleAccountsFoundError,
    ProfileServiceConfigurationError,
)
from ..interfaces.password_interface import IPasswordEncoder
from ..interfaces.repository_interface import IProfileRepository
from ..models.profile import UserProfile

logger = structlog.get_logger()

# attributes managed by the store itself, never exposed on a profile
INTERNAL_ATTRIBUTES = frozenset({"_rev"})


class ProfileService:
    """Service responsible for profile persistence and credential checks."""

    def __init__(
        self,
        repository: IProfileRepository,
        password_encoder: IPasswordEncoder,
        attributes: Optional[List[str]] = None,
        id_attribute: str = "_id",
        linked_id_attribute: str = "linkedid",
        username_attribute: str = "username",
        password_attribute: str = "password"
    ):
        if repository is None:
            raise ProfileServiceConfigurationError("repository cannot be None")
        if password_encoder is None:
            raise ProfileServiceConfigurationError("password_encoder cannot be None")

        self.repository = repository
        self.password_encoder = password_encoder
        self.attributes = list(attributes or [])
        self.id_attribute = id_attribute
        self.linked_id_attribute = linked_id_attribute
        self.username_attribute = username_attribute
        self.password_attribute = password_attribute

    @classmethod
    def from_settings(
        cls,
        repository: IProfileRepository,
        password_encoder: IPasswordEncoder,
        settings: Optional[Settings] = None
    ) -> "ProfileService":
        settings = settings or get_settings()
        return cls(
            repository=repository,
            password_encoder=password_encoder,
            attributes=settings.profile_attributes,
        )

    async def create(self, profile: UserProfile, password: str) -> None:
        """
        Persist a new profile with its password.

        Args:
            profile: Profile to store; must have an id and a username
            password: Plaintext password, hashed before storage
        """
        if not password:
            raise ValueError("password cannot be blank")
        attributes = self._convert_profile_and_password_to_attributes(profile, password)
        await self.repository.insert(attributes)
        logger.info("Profile created", id=profile.id)

    async def update(self, profile: UserProfile, password: Optional[str] = None) -> None:
        """
        Update a stored profile, creating it when it does not exist.

        The stored password is kept unless a new one is given.
        """
        attributes = self._convert_profile_and_password_to_attributes(profile, password)
        await self.repository.update(attributes)
        logger.info("Profile updated", id=profile.id, password_changed=bool(password))

    async def remove(self, profile: UserProfile) -> None:
        if profile is None:
            raise ValueError("profile cannot be None")
        await self.remove_by_id(profile.id)

    async def remove_by_id(self, profile_id: str) -> None:
        if not profile_id:
            raise ValueError("id cannot be blank")
        await self.repository.delete_by_id(profile_id)
        logger.info("Profile removed", id=profile_id)

    async def find_by_id(self, profile_id: str) -> Optional[UserProfile]:
        if not profile_id:
            raise ValueError("id cannot be blank")
        return await self._retrieve_profile(self.id_attribute, profile_id)

    async def find_by_linked_id(self, linked_id: str) -> Optional[UserProfile]:
        if not linked_id:
            raise ValueError("linked_id cannot be blank")
        return await self._retrieve_profile(self.linked_id_attribute, linked_id)

    async def validate(self, username: str, password: str) -> UserProfile:
        """
        Check a username/password pair against the stored profiles.

        Args:
            username: Username to look up
            password: Plaintext password

        Returns:
            The matching profile, without its password

        Raises:
            BadCredentialsError: If a credential is blank or the password is wrong
            AccountNotFoundError: If no profile has this username
            MultipleAccountsFoundError: If several profiles share this username
        """
        if not username or not password:
            raise BadCredentialsError("Username and password cannot be blank")

        results = self._with_identifier(await self.repository.read(
            self._define_attributes_to_read(with_password=True),
            self.username_attribute,
            username
        ))

        if not results:
            logger.info("Credential validation failed", reason="account_not_found")
            raise AccountNotFoundError(f"No account found for: {username}")
        if len(results) > 1:
            logger.warning("Credential validation failed", reason="multiple_accounts", count=len(results))
            raise MultipleAccountsFoundError(f"Too many accounts found for: {username}")

        stored = results[0]
        if not self.password_encoder.matches(password, stored.get(self.password_attribute)):
            logger.info("Credential validation failed", reason="bad_password")
            raise BadCredentialsError(f"Bad credentials for: {username}")

        stored_hash = stored[self.password_attribute]
        if self.password_encoder.needs_update(stored_hash):
            await self.repository.update({
                self.id_attribute: stored[self.id_attribute],
                self.password_attribute: self.password_encoder.encode(password),
            })
            logger.info("Password hash upgraded", id=stored[self.id_attribute])

        profile = self._convert_attributes_to_profile(stored)
        logger.info("Credentials validated", id=profile.id)
        return profile

    async def _retrieve_profile(self, key: str, value: str) -> Optional[UserProfile]:
        results = self._with_identifier(
            await self.repository.read(self._define_attributes_to_read(with_password=False), key, value)
        )
        if not results:
            logger.debug("No profile found", key=key, value=value)
            return None
        if len(results) > 1:
            logger.warning("Several profiles found, using the first one", key=key, value=value, count=len(results))
        return self._convert_attributes_to_profile(results[0])

    def _with_identifier(self, results: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        # rows without an id cannot be turned into a profile
        kept = [row for row in results if row.get(self.id_attribute)]
        if len(kept) != len(results):
            logger.warning("Ignoring stored rows without an id", count=len(results) - len(kept))
        return kept

    def _define_attributes_to_read(self, with_password: bool) -> Optional[List[str]]:
        # no explicit attribute list: whole documents are stored and read
        if not self.attributes:
            return None
        names = [self.id_attribute, self.linked_id_attribute, self.username_attribute]
        names.extend(name for name in self.attributes if name not in names)
        if with_password:
            names.append(self.password_attribute)
        return names

    def _convert_profile_and_password_to_attributes(
        self,
        profile: UserProfile,
        password: Optional[str]
    ) -> Dict[str, Any]:
        if profile is None:
            raise ValueError("profile cannot be None")
        if not profile.id:
            raise ValueError("profile id cannot be blank")

        username = profile.get_attribute(self.username_attribute)
        if not username:
            raise ValueError("profile username cannot be blank")

        reserved = {self.id_attribute, self.linked_id_attribute, self.password_attribute}
        storage: Dict[str, Any] = {
            self.id_attribute: profile.id,
            self.username_attribute: username,
        }
        if profile.linked_id:
            storage[self.linked_id_attribute] = profile.linked_id
        if password:
            storage[self.password_attribute] = self.password_encoder.encode(password)

        for name, value in profile.attributes.items():
            if name in reserved or name in INTERNAL_ATTRIBUTES or name == self.username_attribute:
                continue
            if self.attributes and name not in self.attributes:
                continue
            storage[name] = value
        return storage

    def _convert_attributes_to_profile(self, storage: Dict[str, Any]) -> UserProfile:
        profile = UserProfile(
            id=storage[self.id_attribute],
            linked_id=storage.get(self.linked_id_attribute),
            username_attribute=self.username_attribute,
        )
        skipped = {self.id_attribute, self.linked_id_attribute, self.password_attribute} | INTERNAL_ATTRIBUTES
        for name, value in storage.items():
            if name not in skipped:
                profile.add_attribute(name, value)
        return profile

    def __repr__(self) -> str:
        return (
            f"ProfileService(repository={self.repository!r}, password_encoder={self.password_encoder!r}, "
            f"attributes={self.attributes!r}, id_attribute={self.id_attribute!r}, "
            f"username_attribute={self.username_attribute!r}, password_attribute={self.password_attribute!r})"
        )
