"""
Simulated container runtime objects

Records behind the `docker` command: containers, images, networks and
volumes. None of them are namespaced.
"""

from .container import Container, ContainerState
from .image import Image, split_image_reference
from .network import Network, PREDEFINED_NETWORKS
from .storage import Volume

__all__ = [
    'Container', 'ContainerState',
    'Image', 'split_image_reference',
    'Network', 'PREDEFINED_NETWORKS',
    'Volume'
]
