"""
GLTF/GLB Loader

Reads GLTF and GLB files into the baker's Scene model: node hierarchy,
skinned mesh bone lists and keyframe animations.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import pygltflib
from pyrr import Matrix44

from ..animation import AnimationTrack, SourceAnimation
from ..config.settings import GLTF_ROOT_NODE_NAME, GLTF_TICKS_PER_SECOND
from ..core.scene_graph import MeshInfo, Scene, SceneGraph
from ..core.transforms import trs_to_matrix

logger = logging.getLogger(__name__)

COMPONENT_DTYPES = {
    5120: np.int8,     # BYTE
    5121: np.uint8,    # UNSIGNED_BYTE
    5122: np.int16,    # SHORT
    5123: np.uint16,   # UNSIGNED_SHORT
    5125: np.uint32,   # UNSIGNED_INT
    5126: np.float32,  # FLOAT
}

COMPONENT_COUNTS = {
    'SCALAR': 1,
    'VEC2': 2,
    'VEC3': 3,
    'VEC4': 4,
    'MAT2': 4,
    'MAT3': 9,
    'MAT4': 16,
}

# Divisors for normalized integer accessors (glTF 2.0 spec, section 3.11)
NORMALIZED_DIVISORS = {
    5120: 127.0,
    5121: 255.0,
    5122: 32767.0,
    5123: 65535.0,
}


class GltfSceneLoader:
    """
    Converts GLTF/GLB content into a Scene for the animation baker.
    """

    def __init__(self, ticks_per_second: float = GLTF_TICKS_PER_SECOND):
        """
        Initialize loader.

        Args:
            ticks_per_second: Source tick rate assigned to loaded animations;
                key times in seconds are multiplied by it
        """
        self.ticks_per_second = ticks_per_second

    def load(self, filepath: Union[str, Path]) -> Scene:
        """
        Load a GLTF or GLB file.

        Args:
            filepath: Path to .gltf or .glb file

        Returns:
            Scene ready for the animation generator
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"Model file not found: {filepath}")

        logger.info("Loading model: %s", filepath)
        gltf = pygltflib.GLTF2().load(str(filepath))
        scene = self.build_scene(gltf, name=filepath.stem)

        logger.info("Loaded %r", scene)
        return scene

    def build_scene(self, gltf: pygltflib.GLTF2, name: str = "Scene") -> Scene:
        """
        Build a Scene from already-parsed GLTF data.

        Args:
            gltf: Parsed GLTF document
            name: Scene name
        """
        graph, node_map = self._build_graph(gltf)
        scene = Scene(graph, name=name)
        self._attach_meshes(gltf, scene, node_map)
        scene.animations = self._load_animations(gltf)
        return scene

    def _root_node_indices(self, gltf: pygltflib.GLTF2) -> List[int]:
        """Root nodes of the default scene, or every parentless node."""
        if gltf.scenes:
            scene_index = gltf.scene if gltf.scene is not None else 0
            return list(gltf.scenes[scene_index].nodes or [])

        children = {child for node in gltf.nodes for child in (node.children or [])}
        return [idx for idx in range(len(gltf.nodes)) if idx not in children]

    def _build_graph(self, gltf: pygltflib.GLTF2) -> Tuple[SceneGraph, Dict[int, int]]:
        """
        Copy the node hierarchy into a SceneGraph.

        Returns:
            (graph, mapping of GLTF node index -> graph node index)
        """
        graph = SceneGraph()
        node_map: Dict[int, int] = {}

        roots = self._root_node_indices(gltf)
        if len(roots) == 1:
            stack = [(roots[0], None)]
        else:
            graph.add_node(GLTF_ROOT_NODE_NAME)
            stack = [(idx, 0) for idx in reversed(roots)]

        while stack:
            gltf_idx, parent = stack.pop()
            if gltf_idx in node_map:
                raise ValueError(f"GLTF node {gltf_idx} is reachable from more than one parent")

            node = gltf.nodes[gltf_idx]
            scene_node = graph.add_node(self._node_name(gltf, gltf_idx), self._get_node_transform(node), parent)
            node_map[gltf_idx] = scene_node.index

            for child_idx in reversed(node.children or []):
                stack.append((child_idx, scene_node.index))

        return graph, node_map

    @staticmethod
    def _node_name(gltf: pygltflib.GLTF2, node_idx: int) -> str:
        node = gltf.nodes[node_idx]
        return node.name if node.name else f"Node_{node_idx}"

    def _get_node_transform(self, node) -> Matrix44:
        """
        Extract the local transformation matrix of a GLTF node.

        Args:
            node: GLTF node

        Returns:
            4x4 matrix in pyrr row-vector convention
        """
        if node.matrix is not None and len(node.matrix) == 16:
            # Column-major in the file, which reads row-major as the row-vector form
            return Matrix44(np.array(node.matrix, dtype=np.float64).reshape(4, 4))

        translation = node.translation if node.translation is not None else [0.0, 0.0, 0.0]
        rotation = node.rotation if node.rotation is not None else [0.0, 0.0, 0.0, 1.0]
        scale = node.scale if node.scale is not None else [1.0, 1.0, 1.0]
        return trs_to_matrix(translation, rotation, scale)

    def _attach_meshes(self, gltf: pygltflib.GLTF2, scene: Scene, node_map: Dict[int, int]):
        """Record one MeshInfo per distinct (mesh, skin) pair and link it to its nodes."""
        mesh_indices: Dict[Tuple[int, Optional[int]], int] = {}

        for gltf_idx, graph_idx in node_map.items():
            node = gltf.nodes[gltf_idx]
            if node.mesh is None:
                continue

            key = (node.mesh, node.skin)
            if key not in mesh_indices:
                gltf_mesh = gltf.meshes[node.mesh]
                mesh_name = gltf_mesh.name if gltf_mesh.name else f"Mesh_{node.mesh}"
                bone_names: List[str] = []
                if node.skin is not None:
                    bone_names = [self._node_name(gltf, joint) for joint in gltf.skins[node.skin].joints]
                scene.meshes.append(MeshInfo(mesh_name, bone_names))
                mesh_indices[key] = len(scene.meshes) - 1

            scene.node_meshes.setdefault(graph_idx, []).append(mesh_indices[key])

    def _load_animations(self, gltf: pygltflib.GLTF2) -> List[SourceAnimation]:
        """
        Load animations, merging translation and rotation channels per node.

        Returns:
            Source animations in file order
        """
        animations = []

        for anim_idx, gltf_anim in enumerate(gltf.animations or []):
            anim_name = gltf_anim.name if gltf_anim.name else f"Animation_{anim_idx}"
            tracks: Dict[str, AnimationTrack] = {}

            for channel in gltf_anim.channels:
                target_path = channel.target.path
                if channel.target.node is None:
                    continue
                if target_path not in ("translation", "rotation"):
                    logger.debug("Ignoring %s channel in '%s'", target_path, anim_name)
                    continue

                sampler = gltf_anim.samplers[channel.sampler]
                if sampler.interpolation not in (None, "LINEAR"):
                    logger.warning("Animation '%s' uses %s interpolation; sampling keys linearly",
                                   anim_name, sampler.interpolation)

                node_name = self._node_name(gltf, channel.target.node)
                track = tracks.setdefault(node_name, AnimationTrack(node_name))

                times = self._get_accessor_data(gltf, sampler.input).reshape(-1)
                values = self._get_accessor_data(gltf, sampler.output)

                value_size = 3 if target_path == "translation" else 4
                if sampler.interpolation == "CUBICSPLINE":
                    # in-tangent, value, out-tangent per key; keep the values
                    values = values.reshape(-1, 3, value_size)[:, 1, :]
                values = values.reshape(-1, value_size)

                if len(values) != len(times):
                    raise ValueError(
                        f"Animation '{anim_name}': {node_name}.{target_path} has "
                        f"{len(times)} times but {len(values)} values"
                    )

                for time, value in zip(times, values):
                    ticks = float(time) * self.ticks_per_second
                    if target_path == "translation":
                        track.add_position_key(ticks, value)
                    else:
                        track.add_rotation_key(ticks, value)

            for track in tracks.values():
                track.sort_keys()

            # glTF has no declared length; the clip ends at its last key
            duration = max((track.end_time for track in tracks.values()), default=0.0)
            animations.append(SourceAnimation(
                anim_name, duration, self.ticks_per_second, tracks.values()
            ))

        return animations

    def _get_accessor_data(self, gltf: pygltflib.GLTF2, accessor_idx: int) -> np.ndarray:
        """
        Get data from an accessor.

        Args:
            gltf: GLTF data
            accessor_idx: Accessor index

        Returns:
            float64 array of shape (count, components)
        """
        accessor = gltf.accessors[accessor_idx]
        component_count = COMPONENT_COUNTS[accessor.type]

        if accessor.bufferView is None:
            # Sparse-only or empty accessor: glTF defines the values as zeros
            return np.zeros((accessor.count, component_count), dtype=np.float64)

        buffer_view = gltf.bufferViews[accessor.bufferView]
        buffer = gltf.buffers[buffer_view.buffer]

        if buffer.uri:
            buffer_data = gltf.get_data_from_buffer_uri(buffer.uri)
        else:
            buffer_data = gltf.binary_blob()

        offset = (buffer_view.byteOffset or 0) + (accessor.byteOffset or 0)
        stride = buffer_view.byteStride or 0

        dtype = np.dtype(COMPONENT_DTYPES[accessor.componentType]).newbyteorder("<")
        element_size = dtype.itemsize * component_count

        if stride == 0 or stride == element_size:
            end_offset = offset + accessor.count * element_size
            data = bytes(buffer_data[offset:end_offset])
        else:
            data = bytearray()
            for i in range(accessor.count):
                element_offset = offset + i * stride
                data.extend(buffer_data[element_offset:element_offset + element_size])
            data = bytes(data)

        array = np.frombuffer(data, dtype=dtype).astype(np.float64)
        if accessor.normalized and accessor.componentType in NORMALIZED_DIVISORS:
            array = np.maximum(array / NORMALIZED_DIVISORS[accessor.componentType], -1.0)

        return array.reshape(accessor.count, component_count)
