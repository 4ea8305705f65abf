"""Numpy backed volume views and segmentation masks."""
