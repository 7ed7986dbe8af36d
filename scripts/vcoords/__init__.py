"""
vcoords - Viral Annotation Coordinate Core

Coordinate algebra and alignment reconciliation for viral genome
annotation:
- Coords strings and segment algebra (spliced features, either strand)
- Relative-to-absolute coordinate mapping
- Indel reconciliation of heuristic alignment anchors
- Joining of split alignments
- Cross-model position maps from CIGAR strings
- Frameshift detection in aligned CDS
- Insert-file (ifile) codec
"""

from .errors import (
    VcoordsError,
    FormatError,
    RangeError,
    ConsistencyError,
)

from .coords import (
    Segment,
    parse_coords,
    serialize_coords,
    coords_length,
    coords_min,
    coords_max,
    summary_strand,
    max_length_segment,
    reverse_complement,
    coords_spans,
    coords_missing,
    coords_from_location,
    protein_to_nucleotide,
)

from .relative import (
    relative_to_absolute,
    protein_relative_to_absolute,
)

from .indels import (
    IndelToken,
    parse_indel_token,
    parse_indel_string,
    merge_indel_tokens,
    reconcile_indels,
)

from .joiner import (
    AlignedFragment,
    UngappedRegion,
    JoinedAlignment,
    join_alignments,
)

from .model_map import (
    Aligned,
    NearGap,
    parse_cigar,
    cigar_to_position_map,
    map_position,
    project_coords,
    project_coords_endpoints,
    parse_model_map,
    read_model_map,
)

from .frameshift import (
    FrameColumn,
    FrameshiftPolicy,
    FrameshiftRun,
    frame_track_from_alignment,
    dominant_frame,
    detect_frameshifts,
    frameshift_runs_to_frame,
)

from .ifile import (
    Insert,
    InsertRecord,
    parse_ifile,
    parse_ifile_text,
    write_ifile,
    write_ifile_text,
    insert_string,
    ifile_records_to_frame,
)

__version__ = "1.0.0"

__all__ = [
    # Errors
    "VcoordsError",
    "FormatError",
    "RangeError",
    "ConsistencyError",
    # Coords
    "Segment",
    "parse_coords",
    "serialize_coords",
    "coords_length",
    "coords_min",
    "coords_max",
    "summary_strand",
    "max_length_segment",
    "reverse_complement",
    "coords_spans",
    "coords_missing",
    "coords_from_location",
    "protein_to_nucleotide",
    # Relative mapping
    "relative_to_absolute",
    "protein_relative_to_absolute",
    # Indels
    "IndelToken",
    "parse_indel_token",
    "parse_indel_string",
    "merge_indel_tokens",
    "reconcile_indels",
    # Joiner
    "AlignedFragment",
    "UngappedRegion",
    "JoinedAlignment",
    "join_alignments",
    # Model map
    "Aligned",
    "NearGap",
    "parse_cigar",
    "cigar_to_position_map",
    "map_position",
    "project_coords",
    "project_coords_endpoints",
    "parse_model_map",
    "read_model_map",
    # Frameshift
    "FrameColumn",
    "FrameshiftPolicy",
    "FrameshiftRun",
    "frame_track_from_alignment",
    "dominant_frame",
    "detect_frameshifts",
    "frameshift_runs_to_frame",
    # ifile
    "Insert",
    "InsertRecord",
    "parse_ifile",
    "parse_ifile_text",
    "write_ifile",
    "write_ifile_text",
    "insert_string",
    "ifile_records_to_frame",
]
