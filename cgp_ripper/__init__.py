"""
cgp_ripper

Rip a paginated online CGP book (raster page backgrounds plus optional SVG
text layers) into a single PDF.
"""

__version__ = "1.0.0"
