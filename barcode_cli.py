import argparse
import codecs
import logging
import os
import sys

import encoder
import engine
import image_util
from engine import EncodeHints, Engine

__version__ = "0.1.0"

logger = logging.getLogger("barcode_cli")

PROG = "barcode-cli"

VERBOSITY_FLAGS = ("-v", "--verbose", "-q", "--quiet")


def positive_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("'{}' is not an integer".format(value))
    if number <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer, got {}".format(number))
    return number


def non_negative_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("'{}' is not an integer".format(value))
    if number < 0:
        raise argparse.ArgumentTypeError("must not be negative, got {}".format(number))
    return number


def character_set(value):
    try:
        return codecs.lookup(value).name
    except LookupError:
        raise argparse.ArgumentTypeError("unknown character set '{}'".format(value))


def bounded_int(low, high):
    def parse(value):
        try:
            number = int(value)
        except ValueError:
            raise argparse.ArgumentTypeError("'{}' is not an integer".format(value))
        if not (low <= number <= high):
            raise argparse.ArgumentTypeError("must be between {} and {}, got {}".format(low, high, number))
        return number
    return parse


r'''
build_parsers
\:brief Constructs the argument parser and its encode/decode subparsers
\:returns (parser, {"encode": subparser, "decode": subparser})
'''
def build_parsers():
    parser = argparse.ArgumentParser(prog = PROG,
                                     description = "Encode data into barcode images and decode barcodes from images.",
                                     epilog = "Use `{} help encode` or `{} help decode` for subcommand options.".format(PROG, PROG))
    parser.add_argument("--version", action = "version", version = "%(prog)s " + __version__)
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action = "store_true", help = "log debugging details")
    verbosity.add_argument("-q", "--quiet", action = "store_true", help = "only log warnings and errors")
    parser.add_argument("file_name", help = "image to write (encode) or read (decode)")

    subparsers = parser.add_subparsers(dest = "command", metavar = "{encode,decode}")
    subparsers.required = True

    enc = subparsers.add_parser("encode", help = "write data into a barcode image")
    enc.add_argument("barcode_type", metavar = "symbology", choices = engine.ENCODABLE_SYMBOLOGIES,
                     help = "one of: " + ", ".join(engine.ENCODABLE_SYMBOLOGIES))
    enc.add_argument("--width", type = positive_int, required = True, help = "image width in pixels")
    enc.add_argument("--height", type = positive_int, required = True, help = "image height in pixels")
    source = enc.add_mutually_exclusive_group(required = True)
    source.add_argument("-d", "--data", help = "text to encode")
    source.add_argument("--data-file", help = "read the text to encode from this file")
    enc.add_argument("--error-correction", type = str.upper,
                     help = "QR code level (L, M, Q, H) or PDF417 security level (0 to 8)")
    enc.add_argument("--character-set", type = character_set,
                     help = "character encoding of a QR code, Data Matrix or PDF417 payload, ex. iso-8859-1")
    enc.add_argument("--margin", type = non_negative_int,
                     help = "quiet zone in modules (default: 4 for QR codes, 2 for Data Matrix and PDF417, "
                            "10 for linear barcodes)")
    enc.add_argument("--qr-version", type = bounded_int(1, 40), help = "exact QR code version to use")
    enc.add_argument("--qr-mask-pattern", type = bounded_int(0, 7),
                     help = "QR code mask pattern; chosen automatically by default")
    enc.add_argument("--pdf417-columns", type = bounded_int(1, 30), help = "PDF417 data columns (default: 6)")
    enc.add_argument("--force-c40", action = "store_const", const = True,
                     help = "encode Data Matrix data with the C40 scheme")

    dec = subparsers.add_parser("decode", help = "read barcodes from an image")
    dec.add_argument("-t", "--try-harder", action = "store_true",
                     help = "retry on preprocessed copies of the image when nothing is found")
    dec.add_argument("-d", "--decode-multi", action = "store_true",
                     help = "report every barcode in the image, one per line")
    dec.add_argument("-b", "--barcode-types", action = "append", metavar = "SYMBOLOGY",
                     choices = sorted(engine.DECODABLE_SYMBOLOGIES),
                     help = "only look for this symbology; may be repeated")
    dec.add_argument("--show-type", action = "store_true", help = "append the symbology to every line")

    return parser, {"encode": enc, "decode": dec}


def configure_logging(verbose = False, quiet = False):
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(level = level, format = "[%(levelname)s] %(message)s", stream = sys.stderr)


r'''
print_help
\:brief Handles `help [encode|decode]`
\:returns exit code
'''
def print_help(topic_args):
    parser, subparsers = build_parsers()
    if not topic_args:
        parser.print_help()
        return engine.EXIT_OK
    topic = topic_args[0]
    if (len(topic_args) > 1 or topic not in subparsers):
        parser.print_usage(sys.stderr)
        print("{}: error: unknown help topic '{}', expected one of: encode, decode".format(PROG, " ".join(topic_args)),
              file = sys.stderr)
        return engine.EXIT_USAGE
    subparsers[topic].print_help()
    return engine.EXIT_OK


def read_data(args):
    if args.data_file is None:
        return args.data
    with open(args.data_file, encoding = "utf-8") as f:
        return f.read()


def encode_command(args, barcode_engine, parser):
    try:
        data = read_data(args)
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Could not read data file '%s': %s", args.data_file, e)
        return engine.EXIT_IO

    if not data:
        parser.error("no data to encode")
    if not image_util.can_write(args.file_name):
        parser.error("cannot write an image with the extension of '{}', try .png or .jpg".format(args.file_name))

    hints = EncodeHints(error_correction = args.error_correction,
                        character_set = args.character_set,
                        margin = args.margin,
                        qr_version = args.qr_version,
                        qr_mask_pattern = args.qr_mask_pattern,
                        pdf417_columns = args.pdf417_columns,
                        force_c40 = args.force_c40)
    ignored = encoder.ignored_hints(args.barcode_type, hints)
    if ignored:
        logger.warning("Ignoring options that do not apply to %s: %s", args.barcode_type,
                       ", ".join("--" + name.replace("_", "-") for name in ignored))
        hints = hints._replace(**{name: None for name in ignored})
    try:
        encoder.validate_hints(args.barcode_type, hints)
    except encoder.SymbolError as e:
        parser.error(str(e))

    logger.debug("Encode: file_name: %s, barcode_type: %s, width: %d, height: %d, data: %r",
                 args.file_name, args.barcode_type, args.width, args.height, data)
    image_format = os.path.splitext(args.file_name)[1]
    image_bytes = barcode_engine.encode(data, args.barcode_type, args.width, args.height,
                                        image_format = image_format, hints = hints)

    try:
        with open(args.file_name, "wb") as f:
            f.write(image_bytes)
    except OSError as e:
        logger.error("Could not save '%s': %s", args.file_name, e)
        return engine.EXIT_IO

    logger.info("Saved to '%s'", args.file_name)
    return engine.EXIT_OK


def decode_command(args, barcode_engine):
    logger.debug("Decode '%s' with: try_harder: %s, decode_multi: %s, barcode_types: %s",
                 args.file_name, args.try_harder, args.decode_multi, args.barcode_types)
    try:
        with open(args.file_name, "rb") as f:
            image_bytes = f.read()
    except OSError as e:
        logger.error("Could not read '%s': %s", args.file_name, e)
        return engine.EXIT_IO

    results = barcode_engine.decode(image_bytes,
                                    multi = args.decode_multi,
                                    try_harder = args.try_harder,
                                    symbologies = args.barcode_types)
    if args.decode_multi:
        logger.info("Found %d results", len(results))

    for result in results:
        if args.show_type:
            print("{} ({})".format(result.text, result.symbology))
        else:
            print(result.text)
    return engine.EXIT_OK


r'''
main
\:brief Parses argv, makes one engine call and turns its outcome into an exit code
\:param argv argument list without the program name, defaults to sys.argv[1:]
\:param barcode_engine an object with encode/decode like engine.Engine, defaults to Engine()
\:returns int exit code, see engine.EXIT_*
'''
def main(argv = None, barcode_engine = None):
    if argv is None:
        argv = sys.argv[1:]
    rest = list(argv)
    while (rest and rest[0] in VERBOSITY_FLAGS):
        rest.pop(0)
    if (rest and rest[0] == "help"):
        return print_help(rest[1:])

    parser, _ = build_parsers()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else engine.EXIT_USAGE

    configure_logging(args.verbose, args.quiet)
    if barcode_engine is None:
        barcode_engine = Engine()

    try:
        if args.command == "encode":
            return encode_command(args, barcode_engine, parser)
        return decode_command(args, barcode_engine)
    except engine.NoSymbolFound as e:
        logger.error("Could not locate a barcode in '%s': %s", args.file_name, e)
        return e.exit_code
    except engine.BarcodeEngineError as e:
        logger.error("%s failed for '%s': %s", args.command.capitalize(), args.file_name, e)
        return e.exit_code
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else engine.EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
