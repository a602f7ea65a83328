"""Descriptor model: references, resources, information and descriptors."""
