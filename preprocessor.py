import imutils
import cv2

from image_util import adaptiveHistogram, sharpening

RESIZE_WIDTH = 1000
THRESHOLD = 140


def to_gray(image):
    if len(image.shape) == 2:
        return image
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def preprocess(image):
    # Resize
    result = imutils.resize(image, width = RESIZE_WIDTH)

    # Convert to gray scale
    result = to_gray(result)

    # Threshold
    _, result = cv2.threshold(result, THRESHOLD, 255, cv2.THRESH_BINARY)
    return result


r'''
variants
\:brief Yields progressively more processed copies of an image for a decoder to retry on
\:param image a BGR (or gray) image
\:returns generator of (name, image) pairs
'''
def variants(image):
    gray = to_gray(image)
    yield "gray", gray

    yield "threshold", preprocess(image)

    _, otsu = cv2.threshold(cv2.GaussianBlur(gray, (5, 5), 0), 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    yield "otsu", otsu

    if len(image.shape) == 3 and image.shape[2] == 3:
        yield "equalized", to_gray(adaptiveHistogram(image))

    yield "sharpened", sharpening(gray)
