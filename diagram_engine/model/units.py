"""
units.py — Grid-unit layout constants.

All engine geometry is expressed in integer grid units. The rendering
collaborator scales grid units to pixels with GRID_SIZE.
"""

# =============================================================================
# GRID
# =============================================================================

GRID_SIZE = 10                      # Pixels per grid unit

# =============================================================================
# MARGINS
# =============================================================================

DEFAULT_MARGIN = 1                  # Uniform inset, also the gap between siblings
DEFAULT_LABEL_MARGIN = 2            # Extra top inset for a labelled container

# =============================================================================
# SIZE FLOORS
# =============================================================================

MIN_WIDTH = 5
MIN_HEIGHT = 3

# =============================================================================
# DEFAULT NODE SIZES (w, h)
# =============================================================================

DEFAULT_ROOT_SIZE = (16, 10)
DEFAULT_CONTAINER_SIZE = (6, 4)
DEFAULT_LEAF_SIZE = (4, 3)
DEFAULT_LABEL_SIZE = (8, 2)
