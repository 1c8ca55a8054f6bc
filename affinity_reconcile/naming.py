"""
Naming convention that maps resource names to affinity domains.

Hosts, workloads and storage are assigned to a domain by name prefix:
``alpha-vms`` belongs to ``alpha``, and so does ``alpha_ds01``. Group names
split on one delimiter and storage names on another. All classification in
the engine goes through ``derive_domain`` so an alternate convention only
needs a different ``NamingConvention``.
"""

from dataclasses import dataclass

DEFAULT_GROUP_DELIMITER = "-"
DEFAULT_STORAGE_DELIMITER = "_"


def derive_domain(name: str, delimiter: str) -> str:
    """
    Return the substring of ``name`` before the first ``delimiter``.

    A name without the delimiter is its own domain.

    Examples:
        >>> derive_domain("alpha-vms", "-")
        'alpha'
        >>> derive_domain("beta_ds01", "_")
        'beta'
        >>> derive_domain("shared", "_")
        'shared'
    """
    if not delimiter:
        return name
    return name.split(delimiter, 1)[0]


def swap_domain(name: str, delimiter: str, new_domain: str) -> str:
    """
    Replace the domain prefix of ``name`` with ``new_domain``.

    Only the prefix changes; everything from the first delimiter on is kept
    verbatim. A name without a delimiter is replaced whole.

    Examples:
        >>> swap_domain("beta_ds01", "_", "alpha")
        'alpha_ds01'
        >>> swap_domain("beta_pod_gold", "_", "alpha")
        'alpha_pod_gold'
    """
    current = derive_domain(name, delimiter)
    return new_domain + name[len(current) :]


@dataclass(frozen=True)
class NamingConvention:
    """Delimiters used to derive domains from group and storage names."""

    group_delimiter: str = DEFAULT_GROUP_DELIMITER
    storage_delimiter: str = DEFAULT_STORAGE_DELIMITER

    @classmethod
    def from_config(cls, config: dict) -> "NamingConvention":
        naming = config.get("naming", {}) or {}
        return cls(
            group_delimiter=naming.get("group_delimiter", DEFAULT_GROUP_DELIMITER),
            storage_delimiter=naming.get("storage_delimiter", DEFAULT_STORAGE_DELIMITER),
        )

    def group_domain(self, group_name: str) -> str:
        return derive_domain(group_name, self.group_delimiter)

    def storage_domain(self, location_name: str) -> str:
        return derive_domain(location_name, self.storage_delimiter)

    def retarget_storage(self, location_name: str, domain: str) -> str:
        """Return the storage name ``location_name`` would have in ``domain``."""
        return swap_domain(location_name, self.storage_delimiter, domain)
