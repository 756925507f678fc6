# Campus Parking — Database Models
# Import all models here for SQLAlchemy discovery

from campus_parking.models.site import Site                          # noqa
from campus_parking.models.building import Building, ScheduleEntry   # noqa
from campus_parking.models.floor import Floor                        # noqa
from campus_parking.models.zone import Zone                          # noqa
from campus_parking.models.slot import Slot                          # noqa
from campus_parking.models.reservation import Reservation            # noqa
