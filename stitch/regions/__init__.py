
# Import the base region class
from .base_region import Region

# Import the concrete region shapes
from .rectangle import RectRegion
from .polygon import PolygonRegion
