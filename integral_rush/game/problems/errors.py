from integral_rush.game.errors import UpstreamUnavailableError


class ProblemCatalogUnavailableError(UpstreamUnavailableError):
    code = "E_PROBLEM_CATALOG_UNAVAILABLE"
