from .exceptions import PrintError, PrintConfigError, PrintJobError, PrintOutputError
from .sinks import BaseSink, DryRunSink, PngFileSink, SvgFileSink, make_sink, send_sheets
