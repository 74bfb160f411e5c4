from .runner import MigrationRunner, discover

__all__ = ["MigrationRunner", "discover"]
