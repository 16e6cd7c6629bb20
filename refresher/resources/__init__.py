"""Plugin binaries bundled with release builds (patchwork.sprx, patchwork-rpcs3.sprx)."""
