"""Camera module for primary ray generation."""

from .camera import Camera, CameraConfig, get_ray

__all__ = ["Camera", "CameraConfig", "get_ray"]
