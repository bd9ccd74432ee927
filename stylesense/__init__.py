"""StyleSense: AI wardrobe, stylist and virtual try-on."""

__version__ = "1.0.0"
