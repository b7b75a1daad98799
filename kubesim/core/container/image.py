"""
Simulated image records

Images are keyed by repository:tag; the store never holds two records with
the same pair.
"""

from typing import Dict, Any, Tuple

from ..orchestration.meta import timestamp_to_rfc3339

DEFAULT_TAG = 'latest'


def split_image_reference(reference: str) -> Tuple[str, str]:
    """
    Split an image reference into repository and tag.

    "nginx" -> ("nginx", "latest"); "localhost:5000/app:v1" -> ("localhost:5000/app", "v1")
    """
    last_part = reference.rsplit('/', 1)[-1]
    if ':' in last_part:
        repository, tag = reference.rsplit(':', 1)
        return repository, tag or DEFAULT_TAG
    return reference, DEFAULT_TAG


class Image:
    """Container image class"""
    def __init__(self, repository: str, tag: str, image_id: str, size: str, created: float):
        """
        Initialize an image

        Args:
            repository: Repository name
            tag: Image tag
            image_id: 12-char hex id
            size: Human readable size, e.g. "187MB"
            created: Creation timestamp
        """
        self.repository = repository
        self.tag = tag
        self.id = image_id
        self.size = size
        self.created = created

    @property
    def reference(self) -> str:
        return f"{self.repository}:{self.tag}"

    def matches(self, ref: str) -> bool:
        """True for "repo", "repo:tag" or an id prefix"""
        repository, tag = split_image_reference(ref)
        if repository == self.repository and tag == self.tag:
            return True
        return len(ref) >= 3 and self.id.startswith(ref)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Id": f"sha256:{self.id}",
            "RepoTags": [self.reference],
            "Created": timestamp_to_rfc3339(self.created),
            "Size": self.size,
            "Os": "linux",
            "Architecture": "amd64"
        }
