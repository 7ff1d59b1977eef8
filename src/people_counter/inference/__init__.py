from .backend import PoseBackend
from .pose_backend import PoseModelConfig, UltralyticsPoseBackend, create_pose_backend

__all__ = ["PoseBackend", "PoseModelConfig", "UltralyticsPoseBackend", "create_pose_backend"]
