"""VidTube accounts backend."""
