from abc import ABC, abstractmethod

from pinvault.models.biometric import BiometricInfo, BiometricResult


class BiometricAuthenticator(ABC):
    """Device biometric prompt (fingerprint, face).

    Only gates an alternate unlock path; it never stores or replaces the PIN.
    """

    @abstractmethod
    def get_info(self) -> BiometricInfo: ...

    @abstractmethod
    def authenticate(self) -> BiometricResult: ...


class UnavailableBiometric(BiometricAuthenticator):
    """Used on hosts without biometric hardware."""

    def get_info(self) -> BiometricInfo:
        return BiometricInfo(available=False, is_setup=False)

    def authenticate(self) -> BiometricResult:
        return BiometricResult(error="Biometric authentication is not available")
