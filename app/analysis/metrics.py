"""
Metrics and observability for spending analysis.
"""

from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)


class AnalysisMetrics:
    """Track metrics for spending analysis requests."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.total_requests = 0
        self.successful_analyses = 0
        self.failed_analyses = 0
        self.empty_analyses = 0
        self.generated_recommendations = 0
        self.rule_based_recommendations = 0
        self.total_processing_time = 0.0
        self.users_analyzed = set()

    def record_analysis(
        self,
        user_id: str,
        processing_time: float,
        transaction_count: int = 0,
        generated: bool = False,
        success: bool = True,
    ):
        """Record one analyze call."""
        self.total_requests += 1
        self.users_analyzed.add(user_id)
        self.total_processing_time += processing_time

        if not success:
            self.failed_analyses += 1
        else:
            self.successful_analyses += 1
            if transaction_count == 0:
                self.empty_analyses += 1
            elif generated:
                self.generated_recommendations += 1
            else:
                self.rule_based_recommendations += 1

        logger.info(
            f"Metrics: requests={self.total_requests}, "
            f"success={self.successful_analyses}, "
            f"failures={self.failed_analyses}, "
            f"generated={self.generated_recommendations}, "
            f"avg_time={self.get_average_processing_time():.3f}s"
        )

    def get_average_processing_time(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.total_processing_time / self.total_requests

    def get_stats(self) -> Dict[str, Any]:
        return {
            'total_requests': self.total_requests,
            'successful_analyses': self.successful_analyses,
            'failed_analyses': self.failed_analyses,
            'empty_analyses': self.empty_analyses,
            'generated_recommendations': self.generated_recommendations,
            'rule_based_recommendations': self.rule_based_recommendations,
            'unique_users': len(self.users_analyzed),
            'average_processing_time_seconds': self.get_average_processing_time(),
            'success_rate': (
                self.successful_analyses / self.total_requests
                if self.total_requests > 0 else 0.0
            )
        }


# Global metrics instance
metrics = AnalysisMetrics()
