"""
clipcut - split a video into fixed-length clips without re-encoding

This package provides a small segmentation pipeline that:
- Measures the playback duration of the selected video
- Plans cut points at a fixed segment length (60s by default)
- Drives ffmpeg through a load -> ready -> process -> done/error lifecycle
- Stream-copies the video into numbered clips in a private workspace
- Hands the clips back as downloadable artifacts and cleans up after itself

Only one file is processed by one engine instance at a time.
"""

__version__ = "0.1.0"
