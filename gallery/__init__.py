"""Picture gallery: upload images, keep thumbnails and metadata, browse them."""
