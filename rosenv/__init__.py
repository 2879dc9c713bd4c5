"""rosenv — ROS 2 distribution environment manager."""

__version__ = "0.1.0"
