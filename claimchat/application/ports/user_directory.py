from abc import ABC, abstractmethod

from claimchat.domain.entities.user import User


class UserDirectoryPort(ABC):
    @abstractmethod
    def find_by_phone(self, phone_number: str) -> User | None:
        raise NotImplementedError

    @abstractmethod
    def find_by_id(self, user_id: str) -> User | None:
        raise NotImplementedError

    @abstractmethod
    def create(self, phone_number: str) -> User:
        raise NotImplementedError

    @abstractmethod
    def mark_verified(self, user_id: str) -> User:
        raise NotImplementedError
