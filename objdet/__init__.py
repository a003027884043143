"""
Detection Identity Engine

Per-frame association of fresh object detections with predicted object
positions carried over from previous frames, and assignment of stable
identities to every detection.

Frame cycle (strict order):
1. Fetch predictions for the current timestamp
2. Run the detector on the current frame
3. Match detections against predictions (overlap + class)
4. Assign identities (inherit or mint)
5. Emit the identified detections
"""

__version__ = "0.1.0"
__author__ = "Detection Identity Engine Team"
