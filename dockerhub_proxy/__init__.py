"""Docker Hub registry proxy.

Fronts registry-1.docker.io, defaults the ``library`` namespace for official
images and points clients at its own token endpoint.
"""
