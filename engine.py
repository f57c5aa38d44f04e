import logging
from collections import namedtuple

import cv2

import decoder
import encoder
import image_util

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_NOT_FOUND = 3
EXIT_IO = 4

# largest width or height we render, in pixels
MAX_IMAGE_SIDE = 20000

DECODABLE_SYMBOLOGIES = decoder.DECODABLE_SYMBOLOGIES

ENCODABLE_SYMBOLOGIES = encoder.MATRIX_SYMBOLOGIES + encoder.LINEAR_SYMBOLOGIES

DecodedSymbol = namedtuple("DecodedSymbol", ["text", "symbology"])

r'''
EncodeHints
Optional knobs passed through to the symbol writers. None means "writer default".
'''
EncodeHints = namedtuple("EncodeHints",
                         ["error_correction", "character_set", "margin", "qr_version", "qr_mask_pattern",
                          "pdf417_columns", "force_c40"])
EncodeHints.__new__.__defaults__ = (None,) * len(EncodeHints._fields)

class BarcodeEngineError(Exception):
    exit_code = EXIT_FAILURE


class EncodeError(BarcodeEngineError):
    pass


class UnsupportedSymbology(EncodeError):
    exit_code = EXIT_USAGE


class InvalidDimensions(EncodeError):
    exit_code = EXIT_USAGE


class EncodingFailed(EncodeError):
    pass


class DecodeError(BarcodeEngineError):
    pass


class UnreadableImage(DecodeError):
    pass


class NoSymbolFound(DecodeError):
    exit_code = EXIT_NOT_FOUND


r'''
Engine
The encode/decode capability the CLI delegates to. Symbols are built by qrcode,
python-barcode, libdmtx and pdf417gen, scaled to pixels with numpy, read by ZBar,
libdmtx and zxing-cpp, and moved in and out of image bytes by OpenCV.
'''
class Engine():

    r'''
    encode
    \:brief Encodes data into a barcode image
    \:param data the text payload, must be non-empty
    \:param symbology one of ENCODABLE_SYMBOLOGIES, ex. qrcode
    \:param width, height requested size in pixels, both positive and at most MAX_IMAGE_SIDE.
            The image grows if the symbol and its quiet zone do not fit.
    \:param image_format file extension understood by cv2.imencode, ex. ".png"
    \:param hints an EncodeHints, or None
    \:returns bytes the encoded image file
    \:raises UnsupportedSymbology, InvalidDimensions, EncodingFailed
    '''
    def encode(self, data, symbology, width, height, image_format = ".png", hints = None):
        if hints is None:
            hints = EncodeHints()
        if symbology not in ENCODABLE_SYMBOLOGIES:
            raise UnsupportedSymbology("unsupported symbology for encoding: '{}'".format(symbology))
        if (width is None or height is None or width <= 0 or height <= 0):
            raise InvalidDimensions("width and height must be positive, got {}x{}".format(width, height))
        if (width > MAX_IMAGE_SIDE or height > MAX_IMAGE_SIDE):
            raise InvalidDimensions("width and height must be at most {}, got {}x{}".format(
                MAX_IMAGE_SIDE, width, height))
        if (hints.margin is not None and hints.margin < 0):
            raise InvalidDimensions("margin must not be negative, got {}".format(hints.margin))
        if not data:
            raise EncodingFailed("nothing to encode: data is empty")

        linear = symbology in encoder.LINEAR_SYMBOLOGIES
        try:
            if linear:
                modules = encoder.linear_modules(data, symbology)
            else:
                modules = encoder.matrix_modules(data, symbology, hints)
        except encoder.SymbolError as e:
            raise EncodingFailed("couldn't encode as {}: {}".format(symbology, e)) from e

        margin = encoder.quiet_zone(symbology) if hints.margin is None else hints.margin
        logger.debug("%s symbol is %dx%d modules", symbology, modules.shape[1], modules.shape[0])
        try:
            image = image_util.render_modules(modules, width, height, margin, linear = linear)
        except (MemoryError, ValueError) as e:
            raise EncodingFailed("not enough memory to render a {}x{} image with a margin of {}".format(
                width, height, margin)) from e

        try:
            return image_util.encode_image(image, image_format)
        except (cv2.error, ValueError) as e:
            raise EncodingFailed("couldn't write {} image: {}".format(image_format, e)) from e

    r'''
    decode
    \:brief Finds and decodes barcodes in an image file's bytes
    \:param image_bytes contents of an image file
    \:param multi return every detected symbol instead of the first one only
    \:param try_harder retry on preprocessed variants when the plain image yields nothing
    \:param symbologies iterable of symbology tags to look for, None for the default set
            (everything but isbn10, which ZBar would report in place of isbn13)
    \:returns list of DecodedSymbol, never empty
    \:raises UnreadableImage, NoSymbolFound
    '''
    def decode(self, image_bytes, multi = False, try_harder = False, symbologies = None):
        image = image_util.decode_image_bytes(image_bytes)
        if image is None:
            raise UnreadableImage("not a readable image ({} bytes)".format(len(image_bytes)))

        if symbologies:
            unknown = [s for s in symbologies if s not in DECODABLE_SYMBOLOGIES]
            if unknown:
                raise UnsupportedSymbology("unsupported symbology for decoding: {}".format(", ".join(unknown)))
            symbologies = list(symbologies)
        else:
            symbologies = None

        barcodes = decoder.detect_barcodes(image, symbologies, try_harder = try_harder, multi = multi)
        if not barcodes:
            raise NoSymbolFound("no barcode found")

        results = [DecodedSymbol(decoder.barcode_text(b), b.symbology) for b in barcodes]
        if not multi:
            results = results[:1]
        return results
