"""Per-imposter variants: option registration, argv population and run entry."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import ClassVar

import rich_click as click

from sratools_driver.argv_builder import ArgvBuilder
from sratools_driver.cloud import CloudEnvironment
from sratools_driver.dispatch import DispatchEngine
from sratools_driver.identity import IdentityCheck
from sratools_driver.models import ToolIdentity
from sratools_driver.options import CommonOptions, VerbosityStyle, common_parameters
from sratools_driver.sources.base import ResolutionParams


@dataclass(frozen=True, slots=True)
class PassthroughOption:
    """Tool-specific option recognised on the command line and forwarded verbatim.

    Options with a ``metavar`` take a value; ``multiple`` ones may be given
    several times and every value is forwarded in order.
    """

    flags: tuple[str, ...]
    help: str
    metavar: str | None = None
    multiple: bool = False

    @property
    def takes_value(self) -> bool:
        return self.metavar is not None

    @property
    def flag(self) -> str:
        """Spelling forwarded to the tool (the first long form if any)."""

        for flag in self.flags:
            if flag.startswith("--"):
                return flag
        return self.flags[0]

    @property
    def dest(self) -> str:
        return "tool_" + self.flag.lstrip("-").replace("-", "_").lower()

    def to_click(self) -> click.Option:
        if self.takes_value:
            return click.Option(
                [*self.flags, self.dest],
                metavar=self.metavar,
                multiple=self.multiple,
                help=self.help,
            )
        return click.Option([*self.flags, self.dest], is_flag=True, default=False, help=self.help)


def _opt(
    *flags: str,
    help: str,  # noqa: A002
    metavar: str | None = None,
    multiple: bool = False,
) -> PassthroughOption:
    return PassthroughOption(flags, help, metavar, multiple)


class ToolVariant:
    """Behaviour shared by every imposter; subclasses declare what differs.

    Options the variant does not know are forwarded to the tool as given,
    after the known ones. Such an option is taken to be a bare flag unless
    written as ``--name=value``.
    """

    identity: ClassVar[ToolIdentity] = ToolIdentity.INVALID
    summary: ClassVar[str] = ""
    multithreading_option: ClassVar[bool] = True
    verbosity_style: ClassVar[VerbosityStyle] = VerbosityStyle.STANDARD
    uses_source_resolution: ClassVar[bool] = True
    passthrough: ClassVar[tuple[PassthroughOption, ...]] = ()
    output_option: ClassVar[str | None] = None
    output_extension: ClassVar[str] = ""

    def __init__(self, check: IdentityCheck, *, debug_options: bool = False) -> None:
        self.check_result = check
        self.debug_options = debug_options
        self.options = CommonOptions()
        self.tool_values: dict[str, object] = {}
        self.extra_args: tuple[str, ...] = ()

    @property
    def tool_name(self) -> str:
        return self.identity.value

    @property
    def executable(self) -> str:
        return self.check_result.tool_path.private_path()

    @property
    def argv0(self) -> str:
        return self.check_result.tool_path.fullpath

    @property
    def version(self) -> str:
        return self.check_result.tool_path.version

    def add_options(self) -> list[click.Parameter]:
        """Tool-specific parameters first, then the shared ones."""

        params: list[click.Parameter] = [option.to_click() for option in self.passthrough]
        params.extend(
            common_parameters(
                multithreading=self.multithreading_option,
                debug_options=self.debug_options,
            ),
        )
        return params

    def load(self, params: Mapping[str, object]) -> None:
        """Take parsed values; unknown options arrive mixed into the positionals."""

        positional = tuple(str(token) for token in params.get("accessions") or ())
        extra = tuple(token for token in positional if _is_option(token))
        for token in extra:
            name = token.split("=", 1)[0]
            if name in self._withheld_flags() or (
                name.startswith("-+") and "-+" in self._withheld_flags()
            ):
                raise click.NoSuchOption(name)

        self.options = CommonOptions.from_params(
            {**params, "accessions": tuple(token for token in positional if not _is_option(token))},
        )
        self.extra_args = extra
        self.tool_values = {
            option.dest: params.get(option.dest) for option in self.passthrough
        }

    def show(self) -> list[str]:
        lines = self.options.show()
        for option in self.passthrough:
            value = self.tool_values.get(option.dest)
            if not value:
                continue
            if value is True:
                lines.append(option.flag)
            elif option.multiple:
                lines.append(f"{option.flag}: {', '.join(str(item) for item in value)}")
            else:
                lines.append(f"{option.flag}: {value}")
        if self.extra_args:
            lines.append(f"other options: {' '.join(self.extra_args)}")
        return lines

    def check(self, *, cloud: CloudEnvironment, dry_run: bool = False) -> bool:
        return self.options.check(cloud=cloud, dry_run=dry_run)

    def resolution_params(self) -> ResolutionParams:
        return ResolutionParams(
            location=self.options.location,
            perm_file=self.options.perm_file,
            ngc_file=self.options.ngc_file,
        )

    def populate_argv(
        self,
        builder: ArgvBuilder,
        acc_index: int,
        accessions: Sequence[str],
    ) -> None:
        self.options.populate_common_argv(builder, style=self.verbosity_style)
        for option in self.passthrough:
            value = self.tool_values.get(option.dest)
            if not value:
                continue
            if not option.takes_value:
                builder.add_option(option.flag)
            elif option.multiple:
                builder.add_option_list(option.flag, value)
            elif option.flag == self.output_option and self._splits_output(accessions):
                builder.add_option(
                    option.flag,
                    _per_accession_output(accessions, acc_index, value, self.output_extension),
                )
            else:
                builder.add_option(option.flag, value)
        for token in self.extra_args:
            builder.add_option(token)

    def run(self, engine: DispatchEngine) -> int:
        accessions = self.options.accessions
        if self._splits_output(accessions):
            self._print_unsafe_output_file_message(accessions)
        if self.uses_source_resolution:
            return engine.run(self, accessions)
        engine.exec_direct(self, accessions)

    def _withheld_flags(self) -> frozenset[str]:
        """Shared options this variant does not offer; never forwarded."""

        flags: set[str] = set()
        if not self.multithreading_option:
            flags.add("--disable-multithreading")
        if not self.debug_options:
            flags.update({"-+", "--debug"})
        return frozenset(flags)

    def _splits_output(self, accessions: Sequence[str]) -> bool:
        if self.output_option is None or len(accessions) < 2:
            return False
        return any(
            option.flag == self.output_option and self.tool_values.get(option.dest)
            for option in self.passthrough
        )

    def _print_unsafe_output_file_message(self, accessions: Sequence[str]) -> None:
        # output is going to files, so stdout is free to talk to the user
        click.echo(
            f"{self.tool_name} can not produce valid output from more than one\n"
            "run into a single file.\n"
            "The following output files will be created instead:",
        )
        for accession in accessions:
            click.echo(f"\t{accession}{self.output_extension}")
        click.echo("")


def _is_option(token: str) -> bool:
    return len(token) > 1 and token.startswith("-")


def _per_accession_output(
    accessions: Sequence[str],
    acc_index: int,
    value: object,
    extension: str,
) -> object:
    if 0 <= acc_index < len(accessions):
        return f"{accessions[acc_index]}{extension}"
    return value


class SrapathVariant(ToolVariant):
    identity = ToolIdentity.SRAPATH
    summary = "Resolve accessions to their data locations."
    multithreading_option = False
    uses_source_resolution = False
    passthrough = (
        _opt("-f", "--function", help="function to perform", metavar="<function>"),
        _opt("-t", "--timeout", help="timeout-value for request", metavar="<value>"),
        _opt("-a", "--protocol", help="protocol (fasp; https; ...)", metavar="<protocol>"),
        _opt("-e", "--vers", help="version of the names service", metavar="<version>"),
        _opt("-u", "--url", help="url of the names service", metavar="<url>"),
        _opt(
            "-p",
            "--param",
            help="param to be added to the request",
            metavar="<param>",
            multiple=True,
        ),
        _opt("-d", "--project", help="dbGaP project id", metavar="<id>"),
        _opt("-r", "--raw", help="print the raw reply"),
        _opt("-j", "--json", help="print the reply in JSON"),
        _opt("-c", "--cache", help="print the cache location"),
        _opt("-P", "--path", help="print the path of the accession"),
    )


class PrefetchVariant(ToolVariant):
    identity = ToolIdentity.PREFETCH
    summary = "Download SRA data files and their dependencies."
    multithreading_option = False
    uses_source_resolution = False
    passthrough = (
        _opt("-T", "--type", help="specify file type to download", metavar="<file-type>"),
        _opt("-t", "--transport", help="transport to use", metavar="<http|fasp|both>"),
        _opt("-N", "--min-size", help="minimum file size to download", metavar="<size>"),
        _opt("-X", "--max-size", help="maximum file size to download", metavar="<size>"),
        _opt("-f", "--force", help="force object download", metavar="<yes|no|all|ALL>"),
        _opt("-p", "--progress", help="show progress"),
        _opt("-r", "--resume", help="resume partial downloads", metavar="<yes|no>"),
        _opt("-C", "--verify", help="verify after download", metavar="<yes|no>"),
        _opt("-c", "--check-all", help="double-check all refseqs"),
        _opt("--check-rs", help="check for refseqs in downloaded files", metavar="<yes|no|smart>"),
        _opt("-o", "--output-file", help="write file to this path", metavar="<file>"),
        _opt("-O", "--output-directory", help="save files to this directory", metavar="<dir>"),
        _opt("--order", help="kart prefetch order", metavar="<kart|size>"),
        _opt("-R", "--rows", help="kart rows to download", metavar="<rows>"),
        _opt("-a", "--ascp-path", help="path to ascp program and key", metavar="<ascp|key>"),
        _opt("--ascp-options", help="arbitrary options to pass to ascp", metavar="<value>"),
        _opt("--eliminate-quals", help="download SRA Lite files"),
    )


class FastqDumpVariant(ToolVariant):
    identity = ToolIdentity.FASTQ_DUMP
    summary = "Convert SRA runs into FASTQ."
    verbosity_style = VerbosityStyle.REPEATED
    passthrough = (
        _opt("-A", "--accession", help="replaces accession derived from <path>", metavar="<acc>"),
        _opt("--table", help="table name within cSRA object", metavar="<table-name>"),
        _opt("-N", "--minSpotId", help="minimum spot id", metavar="<rowid>"),
        _opt("-X", "--maxSpotId", help="maximum spot id", metavar="<rowid>"),
        _opt("--spot-groups", help="filter by spot groups", metavar="<list>"),
        _opt("-W", "--clip", help="remove adapter sequences from reads"),
        _opt("-M", "--minReadLen", help="filter by sequence length", metavar="<len>"),
        _opt("-R", "--read-filter", help="split into files by read filter", metavar="<filter>"),
        _opt("-E", "--qual-filter", help="filter used in early 1000 Genomes data"),
        _opt("--qual-filter-1", help="filter used in current 1000 Genomes data"),
        _opt("--aligned", help="dump only aligned sequences"),
        _opt("--unaligned", help="dump only unaligned sequences"),
        _opt(
            "--aligned-region",
            help="filter by position on genome",
            metavar="<name[:from-to]>",
            multiple=True,
        ),
        _opt(
            "--matepair-distance",
            help="filter by distance between matepairs",
            metavar="<from-to|unknown>",
            multiple=True,
        ),
        _opt("--skip-technical", help="dump only biological reads"),
        _opt("-O", "--outdir", help="output directory", metavar="<path>"),
        _opt("-Z", "--stdout", help="output to stdout"),
        _opt("--gzip", help="compress output using gzip"),
        _opt("--bzip2", help="compress output using bzip2"),
        _opt("--split-files", help="write reads into separate files"),
        _opt("--split-3", help="legacy 3-file splitting for mate-pairs"),
        _opt("--split-spot", help="split spots into individual reads"),
        _opt("--concatenate-reads", help="used with split-spot"),
        _opt("-G", "--spot-group", help="split into files by spot group"),
        _opt("-T", "--group-in-dirs", help="split into subdirectories"),
        _opt("-K", "--keep-empty-files", help="do not delete empty files"),
        _opt("-C", "--dumpcs", help="format sequence using color space"),
        _opt("-B", "--dumpbase", help="format sequence using base space"),
        _opt("-Q", "--offset", help="offset to use for quality conversion", metavar="<integer>"),
        _opt("--fasta", help="FASTA only, no qualities"),
        _opt("--suppress-qual-for-cskey", help="suppress quality-value for cskey"),
        _opt("-F", "--origfmt", help="defline contains only original sequence name"),
        _opt("-I", "--readids", help="append read id after spot id"),
        _opt("--helicos", help="Helicos style defline"),
        _opt("--defline-seq", help="defline format specification for sequence", metavar="<fmt>"),
        _opt("--defline-qual", help="defline format specification for quality", metavar="<fmt>"),
        _opt("--legacy-report", help="use legacy style 'Written spots' for tool"),
    )


class FasterqDumpVariant(ToolVariant):
    identity = ToolIdentity.FASTERQ_DUMP
    summary = "Convert SRA runs into FASTQ, multithreaded."
    multithreading_option = False
    output_option = "--outfile"
    output_extension = ".fastq"
    passthrough = (
        _opt("-o", "--outfile", help="full path of outputfile", metavar="<path>"),
        _opt("-O", "--outdir", help="path for outputfile", metavar="<path>"),
        _opt("-b", "--bufsize", help="size of file-buffer", metavar="<size>"),
        _opt("-c", "--curcache", help="size of cursor-cache", metavar="<size>"),
        _opt("-m", "--mem", help="memory limit for sorting", metavar="<size>"),
        _opt("-t", "--temp", help="path to directory for temp. files", metavar="<path>"),
        _opt("-e", "--threads", help="how many threads to use", metavar="<count>"),
        _opt("-p", "--progress", help="show progress"),
        _opt("-x", "--details", help="print details"),
        _opt("-s", "--split-spot", help="split spots into reads"),
        _opt("-S", "--split-files", help="write reads into different files"),
        _opt("-3", "--split-3", help="writes single reads in special file"),
        _opt("--concatenate-reads", help="writes whole spots into one file"),
        _opt("-Z", "--stdout", help="print output to stdout"),
        _opt("-f", "--force", help="force to overwrite existing file(s)"),
        _opt("-N", "--rowid-as-name", help="use rowid as name"),
        _opt("--skip-technical", help="skip technical reads"),
        _opt("--include-technical", help="include technical reads"),
        _opt("-P", "--print-read-nr", help="include read-number in defline"),
        _opt("-M", "--min-read-len", help="filter by sequence-len", metavar="<count>"),
        _opt("--table", help="which seq-table to use in case of pacbio", metavar="<name>"),
        _opt("-B", "--bases", help="filter by bases", metavar="<bases>"),
        _opt("-A", "--append", help="append to output-file"),
        _opt("--fasta", help="produce FASTA output"),
        _opt("--fasta-unsorted", help="produce FASTA output, unsorted"),
        _opt("--fasta-ref-tbl", help="produce FASTA output from REFERENCE tbl"),
        _opt("--fasta-concat-all", help="concatenate all rows and produce FASTA"),
        _opt("--internal-ref", help="extract only internal REFERENCEs"),
        _opt("--external-ref", help="extract only external REFERENCEs"),
        _opt("--ref-name", help="extract only these REFERENCEs", metavar="<name>"),
        _opt("--ref-report", help="enumerate references"),
        _opt("--use-name", help="print name instead of seq-id"),
        _opt("--seq-defline", help="custom defline for sequence", metavar="<fmt>"),
        _opt("--qual-defline", help="custom defline for qualities", metavar="<fmt>"),
        _opt("-U", "--only-unaligned", help="process only unaligned reads"),
        _opt("-a", "--only-aligned", help="process only aligned reads"),
        _opt("--disk-limit", help="explicitly set disk-limit", metavar="<size>"),
        _opt("--disk-limit-tmp", help="explicitly set disk-limit for temp. files", metavar="<size>"),
        _opt("--size-check", help="switch to control size-check", metavar="<on|off|only>"),
    )


class SraPileupVariant(ToolVariant):
    identity = ToolIdentity.SRA_PILEUP
    summary = "Generate pileup statistics on aligned SRA data."
    output_option = "--outfile"
    output_extension = ".pileup"
    passthrough = (
        _opt(
            "-r",
            "--aligned-region",
            help="filter by position on genome",
            metavar="<region>",
            multiple=True,
        ),
        _opt("-o", "--outfile", help="output will be written to this file", metavar="<file>"),
        _opt("-t", "--table", help="which alignment table(s) to use", metavar="<shortcut>"),
        _opt("-q", "--minmapq", help="minimum mapq-value", metavar="<mapq>"),
        _opt("-d", "--duplicates", help="process duplicates (0/1)", metavar="<0|1>"),
        _opt("-n", "--noqual", help="omit qualities in output"),
        _opt("-s", "--spotgroups", help="divide by spotgroups"),
        _opt("-p", "--depth-per-spotgroup", help="print pileup depth per spotgroup"),
        _opt("-e", "--cursor-cache", help="size of cursor cache", metavar="<size>"),
        _opt("--seqname", help="use original seq-name"),
        _opt("--min-mismatch", help="min percent of mismatches", metavar="<percent>"),
        _opt("--merge-dist", help="merge-distance for indels", metavar="<distance>"),
        _opt("--function", help="alternative functionality", metavar="<name>"),
        _opt("--no-skip", help="do not skip empty reference positions"),
        _opt("--show-id", help="show reference-id"),
        _opt("--schema", help="optional schema-file to use", metavar="<file>"),
        _opt("--timing", help="file to write timing log into", metavar="<file>"),
    )


class SamDumpVariant(ToolVariant):
    identity = ToolIdentity.SAM_DUMP
    summary = "Convert SRA alignments into SAM."
    output_option = "--output-file"
    output_extension = ".sam"
    passthrough = (
        _opt("-u", "--unaligned", help="output unaligned reads along with aligned"),
        _opt("-1", "--primary", help="output only primary alignments"),
        _opt("-c", "--cigar-long", help="output long version of CIGAR"),
        _opt("-r", "--header", help="always reconstruct header"),
        _opt("-n", "--no-header", help="do not output headers"),
        _opt("--header-file", help="take all headers from this file", metavar="<file>"),
        _opt("--header-comment", help="add comment to header", metavar="<text>", multiple=True),
        _opt(
            "--aligned-region",
            help="filter by position on genome",
            metavar="<name[:from-to]>",
            multiple=True,
        ),
        _opt(
            "--matepair-distance",
            help="filter by distance between matepairs",
            metavar="<from-to|unknown>",
            multiple=True,
        ),
        _opt("-s", "--seqid", help="print reference SEQ_ID in RNAME"),
        _opt("--hide-identical", help="output '=' if base is identical to reference"),
        _opt("-g", "--spot-group", help="add .SPOT_GROUP to QNAME"),
        _opt("--prefix", help="prefix QNAME", metavar="<prefix>"),
        _opt("--reverse", help="reverse unaligned reads according to read type"),
        _opt("--unaligned-spots-only", help="output reads for spots with no aligned reads"),
        _opt("--cigar-CG", help="output CG version of CIGAR"),
        _opt("--cigar-CG-merge", help="apply CG fixups to CIGAR/SEQ/QUAL"),
        _opt("-Q", "--qual-quant", help="quality scores quantization", metavar="<quantization>"),
        _opt("--CG-evidence", help="output CG evidence aligned to reference"),
        _opt("--CG-ev-dnb", help="output CG evidence DNB's aligned to evidence"),
        _opt("--CG-mappings", help="output CG sequences aligned to reference"),
        _opt("--CG-SAM", help="output CG evidence DNB's aligned to reference"),
        _opt("--report", help="report options instead of executing"),
        _opt("--output-file", help="print output into this file", metavar="<file>"),
        _opt("--output-buffer-size", help="size of output-buffer", metavar="<size>"),
        _opt("--cachereport", help="print report about mate-pair-cache"),
        _opt("--cursor-cache", help="size of cursor cache", metavar="<size>"),
        _opt("--min-mapq", help="min. mapq an alignment has to have", metavar="<mapq>"),
        _opt("--no-mate-cache", help="do not use mate-cache"),
        _opt("--fasta", help="produce Fasta formatted output"),
        _opt("--fastq", help="produce FastQ formatted output"),
        _opt("--omit-quality", help="omit qualities"),
        _opt("--gzip", help="compress output using gzip"),
        _opt("--bzip2", help="compress output using bzip2"),
        _opt("--legacy", help="use legacy code-path"),
    )


class VdbDumpVariant(ToolVariant):
    identity = ToolIdentity.VDB_DUMP
    summary = "Dump the contents of VDB tables."
    passthrough = (
        _opt("-I", "--row_id_on", help="print row id"),
        _opt("-l", "--line_feed", help="line-feed's inbetween rows", metavar="<count>"),
        _opt("-N", "--colname_off", help="do not print column-names"),
        _opt("-X", "--in_hex", help="print numbers in hex"),
        _opt("-T", "--table", help="table-name", metavar="<table>"),
        _opt("-R", "--rows", help="rows (default = all)", metavar="<list>"),
        _opt("-C", "--columns", help="columns (default = all)", metavar="<list>", multiple=True),
        _opt("-x", "--exclude", help="exclude these columns", metavar="<list>"),
        _opt("-b", "--boolean", help="defines how boolean's are printed", metavar="<1|T>"),
        _opt("-f", "--format", help="output format", metavar="<format>"),
        _opt("-E", "--table_enum", help="enumerate tables"),
        _opt("-O", "--column_enum", help="enumerate columns in extended form"),
        _opt("-o", "--column_enum_short", help="enumerate columns in short form"),
        _opt("-D", "--dna_bases", help="print dna-bases"),
        _opt("-M", "--max_length", help="limits line length", metavar="<length>"),
        _opt("-i", "--indent_width", help="indents the line", metavar="<width>"),
        _opt("-n", "--numelem", help="print only element-count"),
        _opt("-u", "--numelemsum", help="sum element-count"),
        _opt("-y", "--id_range", help="prints id-range"),
        _opt("-A", "--info", help="print info about run"),
        _opt("-s", "--spread", help="show spread of integer values"),
        _opt("--idx-report", help="enumerate all available index"),
        _opt("--idx-range", help="enumerate values and row-ranges of one index", metavar="<idx>"),
        _opt("--cur-cache", help="size of cursor cache", metavar="<size>"),
        _opt("--output-file", help="write output to this file", metavar="<file>"),
        _opt("--output-path", help="write output to this directory", metavar="<path>"),
        _opt("--output-buffer-size", help="size of output-buffer", metavar="<size>"),
        _opt("--gzip", help="compress output using gzip"),
        _opt("--bzip2", help="compress output using bzip2"),
        _opt("--outmd5", help="create md5-file for output-file"),
        _opt("--schema", help="schema-file to use", metavar="<file>"),
        _opt("--schema-dump", help="dumps the schema of the table"),
        _opt("--blobbing", help="print blob sizes"),
        _opt("--len-spread", help="show spread of READ/REF_LEN values"),
        _opt("--slice", help="find a slice of given depth", metavar="<depth>"),
    )


VARIANTS: dict[ToolIdentity, type[ToolVariant]] = {
    variant.identity: variant
    for variant in (
        SrapathVariant,
        PrefetchVariant,
        FastqDumpVariant,
        FasterqDumpVariant,
        SraPileupVariant,
        SamDumpVariant,
        VdbDumpVariant,
    )
}


def create_variant(check: IdentityCheck, *, debug_options: bool = False) -> ToolVariant:
    """Select the variant for a resolved identity; chosen once per process."""

    try:
        variant_cls = VARIANTS[check.identity]
    except KeyError as error:
        raise ValueError(f"No tool variant for identity {check.identity.name}") from error
    return variant_cls(check, debug_options=debug_options)
