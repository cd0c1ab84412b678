"""
Shelf pipelines.

scan - photo of a bookshelf -> ranked list of books (see pipeline.scan)
"""
