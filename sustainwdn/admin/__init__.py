from sustainwdn.admin.controller import (
    AdminController,
    JobAdminController,
    PathwayAdminController,
    UserAdminController,
)

__all__ = ["AdminController", "JobAdminController", "PathwayAdminController", "UserAdminController"]
