"""Shared utilities for the data pipeline."""

from uph_pipeline.utils.io import read_csv_files, replace_output, write_output
from uph_pipeline.utils.transforms import normalize_columns, WORK_CYCLE_FIELD_MAPPING
from uph_pipeline.utils.validators import validate_dataframe, validate_unique
from uph_pipeline.utils.types import AveragingStrategy, PipelineStatus, SkipReason, FilterReason
