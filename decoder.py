import logging
from collections import namedtuple

import zxingcpp
from pylibdmtx import pylibdmtx
from pyzbar import pyzbar

import preprocessor

logger = logging.getLogger(__name__)

# symbology tag -> ZBar symbol name
ZBAR_SYMBOLOGIES = {
    "qrcode": "QRCODE",
    "code128": "CODE128",
    "code39": "CODE39",
    "code93": "CODE93",
    "ean8": "EAN8",
    "ean13": "EAN13",
    "upca": "UPCA",
    "upce": "UPCE",
    "itf": "I25",
    "codabar": "CODABAR",
    "isbn10": "ISBN10",
    "isbn13": "ISBN13",
    "databar": "DATABAR",
    "databar-exp": "DATABAR_EXP",
}

ZBAR_TAGS = {v: k for k, v in ZBAR_SYMBOLOGIES.items()}

DECODABLE_SYMBOLOGIES = tuple(ZBAR_SYMBOLOGIES) + ("datamatrix", "pdf417")

# With ISBN10 enabled ZBar reports every 978 EAN-13 as ISBN-10, hiding ISBN-13
DEFAULT_SYMBOLOGIES = tuple(s for s in DECODABLE_SYMBOLOGIES if s != "isbn10")

# libdmtx keeps scanning an image without a symbol for a long time
DMTX_TIMEOUT_MS = 3000

Found = namedtuple("Found", ["data", "symbology"])


r'''
zbar_decode
\:brief Applies pyzbar to decode an image
\:param image the original image
\:param symbologies tags of the symbologies to look for; those ZBar can't read are skipped
\:returns list of Found, data still encoded in utf-8
'''
def zbar_decode(image, symbologies):
    symbols = [pyzbar.ZBarSymbol[ZBAR_SYMBOLOGIES[s]] for s in symbologies if s in ZBAR_SYMBOLOGIES]
    if not symbols:
        return []
    return [Found(b.data, ZBAR_TAGS.get(b.type, b.type.lower())) for b in pyzbar.decode(image, symbols = symbols)]


def dmtx_decode(image, max_count = None):
    found = pylibdmtx.decode(image, timeout = DMTX_TIMEOUT_MS, max_count = max_count)
    return [Found(d.data, "datamatrix") for d in found]


def zxing_decode(image):
    found = zxingcpp.read_barcodes(image, formats = zxingcpp.BarcodeFormat.PDF417)
    return [Found(r.text.encode("utf-8"), "pdf417") for r in found]


r'''
decode_image
\:brief Runs every backend that reads one of the wanted symbologies:
        ZBar, then libdmtx for Data Matrix, then zxing-cpp for PDF417
\:param image the original image
\:param symbologies tags to look for, ex. ["qrcode"], or None for DEFAULT_SYMBOLOGIES
\:param multi when False, stop at the first backend that finds something
\:returns a list of Found, which has the following fields:

            data: the contents of the barcode, still encoded in utf-8.
                  Grab readable content by:
                        barcode_text(barcode)
            symbology: the tag of the barcode, ex. code128

'''
def decode_image(image, symbologies = None, multi = True):
    wanted = DEFAULT_SYMBOLOGIES if symbologies is None else symbologies

    found = zbar_decode(image, wanted)
    if ("datamatrix" in wanted and (multi or not found)):
        found += dmtx_decode(image, max_count = None if multi else 1)
    if ("pdf417" in wanted and (multi or not found)):
        found += zxing_decode(image)
    return found

r'''
detect_barcodes
\:brief Decodes an image, falling back to preprocessed variants when asked to try harder
\:param image the original image
\:param symbologies see decode_image
\:param try_harder retry on each preprocessor variant until one yields barcodes
\:param multi see decode_image
\:returns list of Found, empty if nothing was found
'''
def detect_barcodes(image, symbologies = None, try_harder = False, multi = True):
    barcodes = decode_image(image, symbologies, multi)
    if (barcodes or not try_harder):
        return barcodes

    for name, variant in preprocessor.variants(image):
        barcodes = decode_image(variant, symbologies, multi)
        if barcodes:
            logger.debug("found %d barcode(s) after %s preprocessing", len(barcodes), name)
            return barcodes
        logger.debug("nothing found after %s preprocessing", name)

    return []


def barcode_text(barcode):
    return barcode.data.decode("utf-8", errors = "replace")
