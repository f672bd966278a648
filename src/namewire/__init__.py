from namewire.exceptions import (
    DependencyCycleError,
    DuplicateRegistrationError,
    InjectionArityMismatchError,
    InvalidRegistrationError,
    NamewireError,
    UnknownDependencyError,
)
from namewire.injection import InjectableParameter, InjectableSignature
from namewire.injector import Injector
from namewire.lock_mode import LockMode
from namewire.markers import Named, NotInjected
from namewire.providers import ProviderMode, ProviderRegistry, ProviderSpec

__all__ = [
    "DependencyCycleError",
    "DuplicateRegistrationError",
    "InjectableParameter",
    "InjectableSignature",
    "InjectionArityMismatchError",
    "Injector",
    "InvalidRegistrationError",
    "LockMode",
    "Named",
    "NamewireError",
    "NotInjected",
    "ProviderMode",
    "ProviderRegistry",
    "ProviderSpec",
    "UnknownDependencyError",
]
