from .vehicle import VELOCITY_TYPE_MASK, MavlinkVehicle, TakeoffRejected

__all__ = ["MavlinkVehicle", "TakeoffRejected", "VELOCITY_TYPE_MASK"]
