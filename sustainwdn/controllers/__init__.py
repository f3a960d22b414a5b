from sustainwdn.controllers.profile import ProfileController
from sustainwdn.controllers.web import WebController

__all__ = ["ProfileController", "WebController"]
