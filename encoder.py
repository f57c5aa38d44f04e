import barcode
import numpy as np
import pdf417gen
import qrcode
from barcode.errors import BarcodeError
from pylibdmtx import pylibdmtx
from pylibdmtx.pylibdmtx_error import PyLibDMTXError
from qrcode.exceptions import DataOverflowError

# Quiet zones, in modules
QR_QUIET_ZONE = 4
LINEAR_QUIET_ZONE = 10
DATA_MATRIX_QUIET_ZONE = 2
PDF417_QUIET_ZONE = 2

# python-barcode names of the linear symbologies we can write
LINEAR_SYMBOLOGIES = ("code128", "gs1_128", "code39", "ean8", "ean13", "upca", "itf", "isbn10", "isbn13")

MATRIX_SYMBOLOGIES = ("qrcode", "datamatrix", "pdf417")

ERROR_CORRECTION_LEVELS = {
    "L": qrcode.constants.ERROR_CORRECT_L,
    "M": qrcode.constants.ERROR_CORRECT_M,
    "Q": qrcode.constants.ERROR_CORRECT_Q,
    "H": qrcode.constants.ERROR_CORRECT_H,
}

PDF417_SECURITY_LEVELS = range(0, 9)
PDF417_COLUMNS = range(1, 31)

# hints each symbology honours besides margin
HINTS = {
    "qrcode": ("error_correction", "character_set", "qr_version", "qr_mask_pattern"),
    "datamatrix": ("character_set", "force_c40"),
    "pdf417": ("error_correction", "character_set", "pdf417_columns"),
}

# ZBar reports Code 39 check characters as data, so don't append one
_LINEAR_OPTIONS = {
    "code39": {"add_checksum": False},
}

FNC1 = "\xf1"


class SymbolError(Exception):
    pass


def quiet_zone(symbology):
    return {
        "qrcode": QR_QUIET_ZONE,
        "datamatrix": DATA_MATRIX_QUIET_ZONE,
        "pdf417": PDF417_QUIET_ZONE,
    }.get(symbology, LINEAR_QUIET_ZONE)


r'''
ignored_hints
\:brief Lists the hints that are set but mean nothing for a symbology
\:returns list of EncodeHints field names
'''
def ignored_hints(symbology, hints):
    honoured = HINTS.get(symbology, ()) + ("margin",)
    return [name for name in hints._fields if getattr(hints, name) is not None and name not in honoured]


r'''
validate_hints
\:brief Checks hint values against what the writer of a symbology accepts
\:raises SymbolError naming the first bad hint
'''
def validate_hints(symbology, hints):
    level = hints.error_correction
    if level is None:
        return
    if symbology == "qrcode" and level.upper() not in ERROR_CORRECTION_LEVELS:
        raise SymbolError("QR code error correction must be one of L, M, Q, H, got '{}'".format(level))
    if symbology == "pdf417":
        if not (str(level).isdigit() and int(level) in PDF417_SECURITY_LEVELS):
            raise SymbolError("PDF417 error correction must be a level from 0 to 8, got '{}'".format(level))


def _payload(data, hints):
    if not hints.character_set:
        return data.encode("utf-8")
    try:
        return data.encode(hints.character_set)
    except LookupError:
        raise SymbolError("unknown character set '{}'".format(hints.character_set))
    except UnicodeEncodeError as e:
        raise SymbolError("data cannot be represented in {}: {}".format(hints.character_set, e))


r'''
qr_modules
\:brief Builds the module matrix of a QR code, without quiet zone
\:param data the text to encode
\:param hints an EncodeHints; error_correction (L/M/Q/H), character_set, qr_version (1..40)
        and qr_mask_pattern (0..7) are honoured
\:returns ndarray of bools, True for dark modules
\:raises SymbolError if the data does not fit or cannot be represented
'''
def qr_modules(data, hints):
    validate_hints("qrcode", hints)
    level = (hints.error_correction or "M").upper()
    payload = _payload(data, hints) if hints.character_set else data

    try:
        qr = qrcode.QRCode(version = hints.qr_version,
                           error_correction = ERROR_CORRECTION_LEVELS[level],
                           border = 0,
                           mask_pattern = hints.qr_mask_pattern)
        qr.add_data(payload)
        qr.make(fit = hints.qr_version is None)
    except (DataOverflowError, TypeError, ValueError) as e:
        raise SymbolError(str(e) or "data too long for a QR code")

    return np.array(qr.get_matrix(), dtype = bool)


r'''
data_matrix_modules
\:brief Builds the module matrix of a Data Matrix symbol with libdmtx, without quiet zone
\:note libdmtx hands back a rendered RGB bitmap. The symbol is cut out of its margin and
       sampled once per module; the first run of a timing edge gives the module size.
\:param data the text to encode
\:param hints an EncodeHints; character_set and force_c40 are honoured
\:returns ndarray of bools, True for dark modules
\:raises SymbolError if libdmtx cannot encode the data
'''
def data_matrix_modules(data, hints):
    scheme = "C40" if hints.force_c40 else None
    try:
        encoded = pylibdmtx.encode(_payload(data, hints), scheme = scheme)
    except PyLibDMTXError as e:
        raise SymbolError(str(e) or "libdmtx could not encode the data")

    pixels = np.frombuffer(encoded.pixels, dtype = np.uint8)
    pixels = pixels.reshape(encoded.height, encoded.width, encoded.bpp // 8)
    dark = pixels[:, :, 0] < 128

    rows = np.where(dark.any(axis = 1))[0]
    cols = np.where(dark.any(axis = 0))[0]
    symbol = dark[rows[0]:rows[-1] + 1, cols[0]:cols[-1] + 1]

    # timing edges start dark and alternate; the finder edges are solid
    edges = (symbol[0], symbol[-1], symbol[:, 0], symbol[:, -1])
    runs = [int(np.argmin(edge)) for edge in edges if edge[0] and not edge.all()]
    if not runs:
        raise SymbolError("libdmtx returned a symbol without a timing pattern")
    module = min(runs)
    return symbol[module // 2::module, module // 2::module]


r'''
pdf417_modules
\:brief Builds the module matrix of a PDF417 symbol with pdf417gen, without quiet zone
\:note Each row is three modules tall, so the matrix keeps the 3:1 row aspect when its
       modules are drawn square.
\:param data the text to encode
\:param hints an EncodeHints; error_correction (security level 0..8), character_set and
        pdf417_columns (1..30) are honoured
\:returns ndarray of bools, True for dark modules
\:raises SymbolError if the data does not fit
'''
def pdf417_modules(data, hints):
    validate_hints("pdf417", hints)
    columns = hints.pdf417_columns or 6
    if columns not in PDF417_COLUMNS:
        raise SymbolError("PDF417 columns must be between 1 and 30, got {}".format(columns))
    security_level = 2 if hints.error_correction is None else int(hints.error_correction)

    try:
        codes = pdf417gen.encode(data,
                                 columns = columns,
                                 security_level = security_level,
                                 encoding = hints.character_set or "utf-8")
    except (ValueError, UnicodeEncodeError, LookupError) as e:
        raise SymbolError(str(e) or "data too long for a PDF417 symbol")

    image = pdf417gen.render_image(codes, scale = 1, ratio = 3, padding = 0)
    return np.array(image.convert("L")) < 128


r'''
matrix_modules
\:brief Dispatches to the writer of a 2D (or stacked) symbology
'''
def matrix_modules(data, symbology, hints):
    if symbology == "qrcode":
        return qr_modules(data, hints)
    if symbology == "datamatrix":
        return data_matrix_modules(data, hints)
    if symbology == "pdf417":
        return pdf417_modules(data, hints)
    raise SymbolError("not a 2D symbology: '{}'".format(symbology))


r'''
linear_modules
\:brief Builds the bar pattern of a 1D barcode, without quiet zone
\:param data the text to encode, checked by python-barcode against the symbology's alphabet
\:param symbology one of LINEAR_SYMBOLOGIES
\:returns ndarray of bools with shape (1, n), True for bars
\:raises SymbolError if python-barcode rejects the data, or would write something other than
         the data followed by check digits
'''
def linear_modules(data, symbology):
    if symbology not in LINEAR_SYMBOLOGIES:
        raise SymbolError("not a linear symbology: '{}'".format(symbology))

    barcode_class = barcode.get_barcode_class(symbology)
    try:
        code = barcode_class(data, **_LINEAR_OPTIONS.get(symbology, {}))
        fullcode = code.get_fullcode().lstrip(FNC1)
        pattern = "".join(code.build())
    except (BarcodeError, KeyError, ValueError) as e:
        raise SymbolError(str(e) or type(e).__name__)

    if not fullcode.startswith(data):
        raise SymbolError("{} would encode '{}' instead of '{}'".format(symbology, fullcode, data))

    return np.array([[c != "0" for c in pattern]], dtype = bool)
