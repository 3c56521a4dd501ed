"""Repository path and scope normalisation for Docker Hub.

Docker Hub stores official images under the ``library`` namespace, but clients
address them without it (``alpine`` instead of ``library/alpine``). The same
image name shows up in two representations that both have to be defaulted:

- the request path: ``/v2/alpine/manifests/latest``
- the token scope: ``repository:alpine:pull``

No dependencies on dockerhub_proxy.* modules to maintain independence.
"""

from dataclasses import dataclass, replace
from typing import Optional

DEFAULT_NAMESPACE = "library"


@dataclass(frozen=True)
class RepositoryPath:
    """A repository-scoped registry path.

    Attributes:
        namespace: First part of a two-part repository name (e.g. "library"),
                   None when the client left it out
        repository: Repository name (e.g. "alpine")
        operation: Registry operation (e.g. "manifests" or "blobs")
        reference: Tag or digest (e.g. "latest" or "sha256:abc...")
        prefix: Everything before the repository part, normally "/v2"
    """

    namespace: Optional[str]
    repository: str
    operation: str
    reference: str
    prefix: str = "/v2"

    @property
    def path(self) -> str:
        segments = [self.prefix]
        if self.namespace is not None:
            segments.append(self.namespace)
        segments.extend([self.repository, self.operation, self.reference])
        return "/".join(segments)

    def with_namespace(self, namespace: str) -> "RepositoryPath":
        return replace(self, namespace=namespace)


def parse_repository_path(path: str) -> Optional[RepositoryPath]:
    """Parse a path into a RepositoryPath.

    Only the segment count decides the shape; the segments themselves are not
    validated. Splitting on "/" keeps the empty string in front of the leading
    slash, so:

    - 5 elements: ``/v2/<repository>/<operation>/<reference>``, no namespace
    - 6 elements: ``/v2/<namespace>/<repository>/<operation>/<reference>``

    The first two elements are kept as the prefix, so ``parsed.path`` always
    reproduces the input.

    Args:
        path: Request path (e.g. "/v2/alpine/manifests/latest")

    Returns:
        RepositoryPath, or None if the path has any other shape
    """
    parts = path.split("/")
    prefix = "/".join(parts[:2])

    if len(parts) == 5:
        repository, operation, reference = parts[2:]
        return RepositoryPath(None, repository, operation, reference, prefix)

    if len(parts) == 6:
        namespace, repository, operation, reference = parts[2:]
        return RepositoryPath(namespace, repository, operation, reference, prefix)

    return None


def with_default_namespace(
    path: str, default_namespace: str = DEFAULT_NAMESPACE
) -> Optional[str]:
    """Insert the default namespace into a namespace-less repository path.

    Returns:
        The rewritten path (e.g. "/v2/library/alpine/manifests/latest"), or
        None if the path is not a namespace-less repository path
    """
    parsed = parse_repository_path(path)
    if parsed is None or parsed.namespace is not None:
        return None
    return parsed.with_namespace(default_namespace).path


def normalize_scope(scope: str, default_namespace: str = DEFAULT_NAMESPACE) -> str:
    """Default the namespace of a token scope.

    ``repository:ubuntu:pull`` becomes ``repository:library/ubuntu:pull``.
    Scopes that already name a namespace, or that are not a
    ``<type>:<name>:<actions>`` triple, are returned unchanged.
    """
    parts = scope.split(":")
    if len(parts) == 3 and "/" not in parts[1]:
        parts[1] = f"{default_namespace}/{parts[1]}"
        return ":".join(parts)
    return scope
