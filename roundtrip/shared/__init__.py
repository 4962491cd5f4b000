from .fragment import (
    fragment_sizes,
    iter_chunks,
    make_random_file,
    split_file,
)
from .merge import merge_files
from .verify import Comparison, bytes_equal, compare_files, files_equal
from .workdir import working_directory
