from abc import ABC, abstractmethod


class VerificationPort(ABC):
    @abstractmethod
    def start(self, phone_number: str) -> None:
        """Send a one-time code to the phone number."""
        raise NotImplementedError

    @abstractmethod
    def check(self, phone_number: str, code: str) -> bool:
        raise NotImplementedError
