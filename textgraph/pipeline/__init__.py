"""Processing pipelines."""

from textgraph.pipeline.graph_pipeline import GraphPipeline, PipelineResult

__all__ = ["GraphPipeline", "PipelineResult"]
