# engine/errors.py

class EngineError(Exception):
    pass


class DependencyAnalysisError(EngineError, ValueError):
    pass


class DescriptionParseError(EngineError, ValueError):
    pass
