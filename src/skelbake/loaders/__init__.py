from .gltf_loader import GltfSceneLoader

__all__ = ['GltfSceneLoader']
