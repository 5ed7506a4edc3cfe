from .baseline_repository import BaselineRecord, BaselineRepository, RegistryFile

__all__ = ["BaselineRecord", "BaselineRepository", "RegistryFile"]
