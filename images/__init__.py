"""Image resolver for article headers."""

from images.unsplash import GENERIC_FALLBACK_IMAGE, ImageResolver, build_image_url

__all__ = ["GENERIC_FALLBACK_IMAGE", "ImageResolver", "build_image_url"]
