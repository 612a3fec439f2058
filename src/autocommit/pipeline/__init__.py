"""Change partitioning and the commit pipeline."""
