"""Version tag parsing and ordering.

Remote tags are free-form. When every tag looks like a version
(``v1``, ``1.2``, ``v2.0.0-rc.1``) they are ordered by version precedence;
otherwise the remote's listing order is kept.
"""

import re
from dataclasses import dataclass
from functools import total_ordering

TAG_REF_PATTERN = re.compile(r"^v?\d")


@total_ordering
@dataclass(frozen=True)
class TagVersion:
    """Version parsed from a git tag.

    Missing minor and patch components count as zero, so ``v1`` and
    ``1.0.0`` compare equal.
    """

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: str | None = None

    _TAG_PATTERN = re.compile(
        r"^v?(?P<major>\d+)(?:\.(?P<minor>\d+))?(?:\.(?P<patch>\d+))?"
        r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
        r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
    )

    @classmethod
    def parse(cls, tag: str) -> "TagVersion":
        """Parse a tag name.

        Args:
            tag: Tag name (e.g., "v1.2.3", "2.0", "v3.0.0-beta.1")

        Returns:
            TagVersion instance

        Raises:
            ValueError: If the tag is not a version
        """
        match = cls._TAG_PATTERN.match(tag)
        if not match:
            raise ValueError(f"Invalid version tag: {tag}")

        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor") or 0),
            patch=int(match.group("patch") or 0),
            prerelease=match.group("prerelease"),
        )

    def __str__(self) -> str:
        version = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            version += f"-{self.prerelease}"
        return version

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TagVersion):
            return NotImplemented

        if (self.major, self.minor, self.patch) != (other.major, other.minor, other.patch):
            return (self.major, self.minor, self.patch) < (other.major, other.minor, other.patch)

        # Prerelease versions have lower precedence
        if self.prerelease and not other.prerelease:
            return True
        if not self.prerelease and other.prerelease:
            return False
        if self.prerelease and other.prerelease:
            return _compare_prerelease(self.prerelease, other.prerelease) < 0

        return False


def _compare_prerelease(a: str, b: str) -> int:
    parts_a = a.split(".")
    parts_b = b.split(".")

    for pa, pb in zip(parts_a, parts_b, strict=False):
        if pa.isdigit() and pb.isdigit():
            na, nb = int(pa), int(pb)
            if na != nb:
                return na - nb
        elif pa.isdigit() != pb.isdigit():
            # Numeric identifiers sort before alphanumeric ones
            return -1 if pa.isdigit() else 1
        elif pa != pb:
            return -1 if pa < pb else 1

    return len(parts_a) - len(parts_b)


def is_tag_ref(ref: str | None) -> bool:
    """Whether an installed ref looks like a version tag."""
    return ref is not None and bool(TAG_REF_PATTERN.match(ref))


def parse_tag_version(tag: str) -> TagVersion | None:
    """Parse a tag, returning None if it is not a version."""
    try:
        return TagVersion.parse(tag)
    except ValueError:
        return None


def order_tags(tags: list[str]) -> list[str]:
    """Order tags oldest to newest.

    Tags are sorted by version when all of them parse; otherwise the given
    order is returned unchanged. The sort is stable, so equal versions keep
    their listing order.
    """
    versions = [parse_tag_version(t) for t in tags]
    if any(v is None for v in versions):
        return list(tags)

    pairs = sorted(zip(versions, tags, strict=True), key=lambda pair: pair[0])
    return [tag for _, tag in pairs]


def newer_tags(installed: str, tags: list[str]) -> list[str]:
    """Tags that come after ``installed``, oldest first.

    Args:
        installed: Currently installed tag (must be present in ``tags``)
        tags: All tags on the remote, in listing order

    Returns:
        Tags after ``installed``, leaving out other spellings of the same
        version (``1.0.0`` next to ``v1.0``); empty if ``installed`` is the
        newest or not in the list
    """
    ordered = order_tags(tags)
    try:
        index = ordered.index(installed)
    except ValueError:
        return []

    installed_version = parse_tag_version(installed)
    return [
        tag
        for tag in ordered[index + 1 :]
        if installed_version is None or parse_tag_version(tag) != installed_version
    ]
