import cv2
import numpy as np

#########################
#Rendering
#########################

r'''
\:brief Scales a module matrix into a black on white image of at least width x height pixels
\:note Every module becomes an integer number of pixels and the symbol is centred, the way ZXing
       writers lay out their output. A 2D symbol keeps square modules; a linear symbol
       (one row) is stretched over the whole height.
\:param modules ndarray of bools, True for dark modules, no quiet zone
\:param width requested width in pixels
\:param height requested height in pixels
\:param margin quiet zone in modules, added on both sides (and top/bottom for 2D)
\:param linear True for 1D symbols
\:returns ndarray uint8 single channel image
'''
def render_modules(modules, width, height, margin, linear = False):
    rows, cols = modules.shape
    full_width = cols + 2 * margin
    out_width = max(width, full_width)

    if linear:
        out_height = max(1, height)
        multiple = out_width // full_width
        scaled = np.repeat(modules, multiple, axis = 1)
        scaled = np.repeat(scaled[:1], out_height, axis = 0)
    else:
        full_height = rows + 2 * margin
        out_height = max(height, full_height)
        multiple = min(out_width // full_width, out_height // full_height)
        scaled = np.repeat(np.repeat(modules, multiple, axis = 0), multiple, axis = 1)

    image = np.full((out_height, out_width), 255, dtype = np.uint8)
    h, w = scaled.shape
    left = (out_width - w) // 2
    top = (out_height - h) // 2
    image[top:top + h, left:left + w] = np.where(scaled, 0, 255).astype(np.uint8)
    return image

#########################
#Image files
#########################

r'''
\:brief Encodes an image into the bytes of an image file
\:param image ndarray image
\:param image_format extension of the wanted file type, ex. ".png" or ".jpg"
\:returns bytes
\:raises ValueError if OpenCV refuses to encode
'''
def encode_image(image, image_format):
    ok, buffer = cv2.imencode(image_format, image)
    if not ok:
        raise ValueError("OpenCV could not encode a {} image".format(image_format))
    return buffer.tobytes()

r'''
\:brief Decodes the bytes of an image file into a BGR image
\:param data bytes of a png, jpg, bmp... file
\:returns ndarray BGR image, or None if the bytes are not an image OpenCV can read
'''
def decode_image_bytes(data):
    if not data:
        return None
    buffer = np.frombuffer(data, dtype = np.uint8)
    try:
        return cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    except cv2.error:
        return None

r'''
\:brief Checks whether OpenCV has a writer for the extension of a path
'''
def can_write(path):
    return bool(cv2.haveImageWriter(str(path)))

#########################
#Enhancement
#########################

r'''
\:brief Equalizes the histogram of the lighting channel in LAB color space
\:note The image is expected to be in BGR color space
\:raises AssertionError in case the image does not have 3 channels.
\:param img Numpy image to be processed.
\:param clip_limit From opencv: "Threshold for contrast limiting"
\:param tile_grid_size From opencv: "Size of grid for histogram equalization"
\:returns The equalized image
'''
def adaptiveHistogram(img, clip_limit=2.0, tile_grid_size=(8,8)):
    if(len(img.shape)<3 or img.shape[2] != 3):
        raise AssertionError('The image need to be a colored one')
    clahe = cv2.createCLAHE(clipLimit=clip_limit, tileGridSize=tile_grid_size)
    lab = cv2.cvtColor(img, cv2.COLOR_BGR2LAB)
    l, a, b = cv2.split(lab)
    l2 = clahe.apply(l)  # only the lightness channel
    lab = cv2.merge((l2,a,b))
    return cv2.cvtColor(lab, cv2.COLOR_LAB2BGR)

r'''
\:brief Sharpens the image as a whole
\:note inspired by this article: (https://en.wikipedia.org/wiki/Unsharp_masking#Digital_unsharp_masking)
\:param img Numpy image to be processed
\:param a Sigma of the blur
\:param b Weight of the original image
\:param c Weight of the blurred image, negative to sharpen
'''
def sharpening(img, a=0.3, b=1.5, c=-0.5):
    blur = cv2.GaussianBlur(img, (0, 0), a)
    return cv2.addWeighted(img, b, blur, c, 0)
