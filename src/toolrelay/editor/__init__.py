"""Line diffing and host document buffers."""
