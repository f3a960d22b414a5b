from sustainwdn.db.models.job import JobRole
from sustainwdn.db.models.pathway import CareerPathway
from sustainwdn.db.models.profile import Profile

__all__ = ["CareerPathway", "JobRole", "Profile"]
