"""
Fixed catalog of coordinate reference systems.

The catalog is loaded once and never mutated. Lookups by identifier fail with
UnsupportedCrsError so an unknown project CRS surfaces as a configuration
error rather than a silent fallback.
"""

from typing import Dict, Iterable, List, Tuple

from ..exceptions import UnsupportedCrsError
from .crs import CoordinateReferenceSystem, GeodeticProjection, LocalProjection
from .units import LengthUnit


LOCAL_CRS_ID = "local_calibrated"
LOCAL_COUNTRY_CODE = "LOCAL"


class CrsCatalog:
    """Read-only collection of CRS entries keyed by identifier."""

    def __init__(self, systems: Iterable[CoordinateReferenceSystem]):
        self._systems: Dict[str, CoordinateReferenceSystem] = {}
        for cs in systems:
            if cs.id in self._systems:
                raise ValueError(f"Duplicate CRS id '{cs.id}' in catalog")
            self._systems[cs.id] = cs

    def __contains__(self, crs_id: object) -> bool:
        return crs_id in self._systems

    def __iter__(self):
        return iter(self._systems.values())

    def __len__(self) -> int:
        return len(self._systems)

    def get(self, crs_id: str) -> CoordinateReferenceSystem:
        """
        Resolve a CRS by identifier.

        Raises:
            UnsupportedCrsError: If the identifier is not in the catalog
        """
        try:
            return self._systems[crs_id]
        except KeyError:
            raise UnsupportedCrsError(crs_id) from None

    def countries(self) -> List[Tuple[str, str]]:
        """Return (country_code, country_name) pairs, first-seen order, no duplicates."""
        seen: Dict[str, str] = {}
        for cs in self._systems.values():
            seen.setdefault(cs.country_code, cs.country_name)
        return list(seen.items())

    def systems_for_country(self, country_code: str) -> List[CoordinateReferenceSystem]:
        """Active systems offered for a country."""
        return [
            cs for cs in self._systems.values()
            if cs.country_code == country_code and cs.is_active
        ]

    def default_system_for_country(self, country_code: str) -> CoordinateReferenceSystem:
        """First active system of a country, the local system otherwise."""
        systems = self.systems_for_country(country_code)
        if systems:
            return systems[0]
        return self.get(LOCAL_CRS_ID)


DEFAULT_SYSTEMS = (
    CoordinateReferenceSystem(
        id=LOCAL_CRS_ID,
        name="Local (calibrated)",
        country_code=LOCAL_COUNTRY_CODE,
        country_name="Local",
        projection=LocalProjection(),
    ),
    CoordinateReferenceSystem(
        id="ee_lest97",
        name="L-EST97 / Estonian Coordinate System of 1997",
        country_code="EE",
        country_name="Estonia",
        epsg_code=3301,
        projection=GeodeticProjection(
            "+proj=lcc +lat_1=59.33333333333334 +lat_2=58 +lat_0=57.51755393055556 "
            "+lon_0=24 +x_0=500000 +y_0=6375000 +ellps=GRS80 "
            "+towgs84=0,0,0,0,0,0,0 +units=m +no_defs"
        ),
    ),
    CoordinateReferenceSystem(
        id="lv_lks92",
        name="LKS-92 / Latvia TM",
        country_code="LV",
        country_name="Latvia",
        epsg_code=3059,
        projection=GeodeticProjection(
            "+proj=tmerc +lat_0=0 +lon_0=24 +k=0.9996 +x_0=500000 +y_0=-6000000 "
            "+ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +units=m +no_defs"
        ),
    ),
    CoordinateReferenceSystem(
        id="lt_lks94",
        name="LKS-94 / Lithuania TM",
        country_code="LT",
        country_name="Lithuania",
        epsg_code=3346,
        projection=GeodeticProjection(
            "+proj=tmerc +lat_0=0 +lon_0=24 +k=0.9998 +x_0=500000 +y_0=0 "
            "+ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +units=m +no_defs"
        ),
    ),
    CoordinateReferenceSystem(
        id="fi_tm35fin",
        name="ETRS89 / TM35FIN(E,N)",
        country_code="FI",
        country_name="Finland",
        epsg_code=3067,
        projection=GeodeticProjection(
            "+proj=utm +zone=35 +ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +units=m +no_defs"
        ),
    ),
    CoordinateReferenceSystem(
        id="be_lambert72",
        name="Belge 1972 / Belgian Lambert 72",
        country_code="BE",
        country_name="Belgium",
        epsg_code=31370,
        projection=GeodeticProjection(
            "+proj=lcc +lat_0=90 +lon_0=4.36748666666667 +lat_1=51.1666672333333 "
            "+lat_2=49.8333339 +x_0=150000.013 +y_0=5400088.438 +ellps=intl "
            "+towgs84=-106.8686,52.2978,-103.7239,0.3366,-0.457,1.8422,-1.2747 "
            "+units=m +no_defs"
        ),
    ),
    CoordinateReferenceSystem(
        id="us_ny_long_island_ftus",
        name="NAD83 / New York Long Island (ftUS)",
        country_code="US",
        country_name="United States",
        epsg_code=2263,
        unit=LengthUnit.US_SURVEY_FEET,
        projection=GeodeticProjection(
            "+proj=lcc +lat_0=40.1666666666667 +lon_0=-74 +lat_1=41.0333333333333 "
            "+lat_2=40.6666666666667 +x_0=300000 +y_0=0 +ellps=GRS80 "
            "+towgs84=0,0,0,0,0,0,0 +units=us-ft +no_defs"
        ),
    ),
)


DEFAULT_CATALOG = CrsCatalog(DEFAULT_SYSTEMS)
