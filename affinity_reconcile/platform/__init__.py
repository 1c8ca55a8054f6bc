"""
Platform client abstraction layer.
"""

from affinity_reconcile.platform.base import PlatformClient
from affinity_reconcile.platform.inventory import InventoryClient
from affinity_reconcile.platform.vsphere import VSphereClient


def get_client(config: dict, base_dir=None) -> PlatformClient:
    """
    Factory function to get a platform client based on config.

    Args:
        config: Configuration dict with 'platform' section
        base_dir: Directory that relative inventory paths are resolved against

    Returns:
        PlatformClient instance

    Raises:
        ValueError: If provider is not supported
    """
    platform_config = dict(config.get("platform", {}))
    provider_name = platform_config.get("provider", "vsphere").lower()

    providers = {
        "vsphere": VSphereClient,
        "inventory": InventoryClient,
    }

    if provider_name not in providers:
        raise ValueError(
            f"Unsupported provider: {provider_name}. Must be one of: {list(providers.keys())}"
        )

    if base_dir is not None:
        platform_config.setdefault("base_dir", str(base_dir))

    return providers[provider_name](platform_config)


__all__ = ["PlatformClient", "InventoryClient", "VSphereClient", "get_client"]
