"""
Main Evaluator Module.

Matches pipeline results with ground truth by source file, computes
metrics and writes reports.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from receipt_engine.pipeline.extraction_result import ExtractionResult
from receipt_engine.utils.helpers import ensure_directory
from receipt_engine.utils.logger import get_logger
from .ground_truth import GroundTruthLoader
from .metrics import EvaluationResult, MetricsCalculator

logger = get_logger(__name__)

REPORT_FORMATS = ('txt', 'json')

ResultLike = Union[ExtractionResult, Dict[str, Any]]


def flatten_result(result: ResultLike) -> Tuple[Dict[str, Any], Dict[str, float]]:
    """
    Turn a result into (field values, field confidences).

    Accepts an ``ExtractionResult``, its ``to_dict()`` form, or an
    already-flat record.
    """
    if isinstance(result, ExtractionResult):
        result = result.to_dict(include_raw_text=False)

    if 'fields' in result:
        prediction = dict(result['fields'])
        prediction['source_file'] = result.get('source_file')
        confidences = {v['field']: v['confidence'] for v in result.get('verdicts', [])}
    else:
        prediction = dict(result)
        confidences = dict(result.get('confidence_scores', {}))
    return prediction, confidences


class Evaluator:
    """
    Batch evaluator.

    Example:
        >>> evaluator = Evaluator("ground_truth.json")
        >>> summary = evaluator.evaluate(results)
        >>> summary.passed
        True
    """

    def __init__(
        self,
        ground_truth_path: Optional[Union[str, Path]] = None,
        metrics_calculator: Optional[MetricsCalculator] = None
    ) -> None:
        self.metrics_calculator = metrics_calculator or MetricsCalculator()
        self.ground_truth: Optional[GroundTruthLoader] = None
        if ground_truth_path:
            self.load_ground_truth(ground_truth_path)

        logger.debug("Evaluator initialized")

    def load_ground_truth(self, path: Union[str, Path]) -> None:
        self.ground_truth = GroundTruthLoader(path)
        validation = self.ground_truth.validate()
        if validation['invalid_records'] > 0:
            logger.warning(f"Ground truth has {validation['invalid_records']} incomplete records")

    def _expected_for(self, prediction: Dict[str, Any]) -> Dict[str, Any]:
        if self.ground_truth is None:
            raise ValueError("No ground truth available. Load ground truth or provide it as argument.")

        source_file = prediction.get('source_file')
        record = self.ground_truth.get_by_filename(source_file)
        if record is None:
            logger.warning(f"No ground truth for: {source_file}")
            return {}
        return record

    def evaluate(
        self,
        results: List[ResultLike],
        ground_truth: Optional[List[Dict[str, Any]]] = None
    ) -> EvaluationResult:
        """
        Evaluate a batch.

        Args:
            results: Pipeline results (objects or dicts).
            ground_truth: Expected records in the same order; looked up by
                source file in the loaded ground truth when omitted.

        Raises:
            ValueError: If no ground truth is available.
        """
        flattened = [flatten_result(r) for r in results]
        predictions = [p for p, _ in flattened]
        confidences = [c for _, c in flattened]

        if ground_truth is None:
            ground_truth = [self._expected_for(p) for p in predictions]

        summary = self.metrics_calculator.evaluate(predictions, ground_truth, confidences)
        logger.info(
            f"Evaluation complete: {summary.overall_accuracy * 100:.1f}% accuracy "
            f"on {summary.total_samples} samples ({'PASS' if summary.passed else 'FAIL'})"
        )
        return summary

    def evaluate_single(self, result: ResultLike, ground_truth: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        prediction, confidences = flatten_result(result)
        if ground_truth is None:
            ground_truth = self._expected_for(prediction)
        return self.metrics_calculator.evaluate_single(prediction, ground_truth, confidences)

    def generate_report(
        self,
        evaluation_result: EvaluationResult,
        output_path: Optional[Union[str, Path]] = None,
        format: str = 'txt'
    ) -> str:
        """
        Render a report in ``txt`` or ``json``.

        Returns:
            The report text, or the path written when ``output_path`` is given.
        """
        if format == 'txt':
            report = evaluation_result.print_report()
        elif format == 'json':
            report = json.dumps(evaluation_result.to_dict(), indent=2)
        else:
            raise ValueError(f"Unsupported format: {format} (expected one of {REPORT_FORMATS})")

        if output_path:
            ensure_directory(Path(output_path).parent)
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(report)
            logger.info(f"Report saved to: {output_path}")
            return str(output_path)

        return report

    def save_detailed_results(
        self,
        results: List[ResultLike],
        output_path: Union[str, Path],
        ground_truth: Optional[List[Dict[str, Any]]] = None
    ) -> str:
        """Write per-document comparisons as JSON."""
        detailed = []
        for idx, result in enumerate(results):
            prediction, _ = flatten_result(result)
            expected = (
                ground_truth[idx] if ground_truth and idx < len(ground_truth)
                else (self._expected_for(prediction) if self.ground_truth else {})
            )
            detailed.append({
                'sample_index': idx,
                'source_file': prediction.get('source_file'),
                'prediction': prediction,
                'ground_truth': expected,
                'comparison': self.evaluate_single(result, expected),
            })

        ensure_directory(Path(output_path).parent)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(detailed, f, indent=2, default=str)

        logger.info(f"Detailed results saved to: {output_path}")
        return str(output_path)
