from brandpulse.models.analysis_run import AnalysisRun

__all__ = ["AnalysisRun"]
