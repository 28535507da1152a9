"""Image catalog access: file layout resolution and on-CDN flags."""
