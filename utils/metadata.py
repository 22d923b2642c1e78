"""
EXIF Metadata Reader
Reads camera/shooting metadata into a flat display map.

The detection engine never interprets these values; the CLI attaches them to
an analysis result for display only.
"""

from datetime import datetime
from pathlib import Path

from PIL import Image, ExifTags

from utils.logger import setup_logger

logger = setup_logger(__name__)

RELEVANT_TAGS = {
    # Camera information
    "Make": "Camera Make",
    "Model": "Camera Model",
    "LensMake": "Lens Make",
    "LensModel": "Lens Model",
    "BodySerialNumber": "Camera Serial Number",
    "LensSerialNumber": "Lens Serial Number",
    # Date and software
    "DateTimeOriginal": "Date Taken",
    "DateTimeDigitized": "Creation Date",
    "DateTime": "Modification Date",
    "Software": "Software",
    # Shooting parameters
    "ExposureTime": "Exposure Time",
    "FNumber": "Aperture",
    "ExposureProgram": "Program",
    "ISOSpeedRatings": "ISO",
    "ExposureBiasValue": "Exposure Compensation",
    "MaxApertureValue": "Max Aperture",
    "MeteringMode": "Metering Mode",
    "LightSource": "Light Source",
    "Flash": "Flash",
    "FocalLength": "Focal Length",
    "WhiteBalance": "White Balance",
    "DigitalZoomRatio": "Digital Zoom",
    # Image information
    "ExifImageWidth": "Width",
    "ExifImageHeight": "Height",
    "Orientation": "Orientation",
    "XResolution": "X Resolution",
    "YResolution": "Y Resolution",
    "ResolutionUnit": "Resolution Unit",
    "ColorSpace": "Color Space",
    # Copyright and author
    "Artist": "Photographer",
    "Copyright": "Copyright",
    "UserComment": "Comment",
}

EXPOSURE_PROGRAMS = {
    0: "Not defined",
    1: "Manual",
    2: "Normal program",
    3: "Aperture priority",
    4: "Shutter priority",
    5: "Creative program",
    6: "Action program",
    7: "Portrait",
    8: "Landscape",
}

METERING_MODES = {
    0: "Unknown",
    1: "Average",
    2: "Center weighted average",
    3: "Spot",
    4: "MultiSpot",
    5: "Pattern",
    6: "Partial",
    255: "Other",
}

FLASH_MODES = {
    0x0: "No flash",
    0x1: "Flash fired",
    0x5: "Flash fired, return not detected",
    0x7: "Flash fired, return detected",
    0x8: "On, flash did not fire",
    0x9: "Flash fired, auto mode",
    0xD: "Flash fired, auto mode, return not detected",
    0xF: "Flash fired, auto mode, return detected",
    0x10: "No flash",
    0x18: "Flash did not fire, auto mode",
    0x19: "Flash fired, auto mode",
    0x1D: "Flash fired, auto mode, return not detected",
    0x1F: "Flash fired, auto mode, return detected",
}

DATE_TAGS = ("DateTimeOriginal", "DateTimeDigitized", "DateTime")


def _text(value):
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace").strip("\x00").strip()
    if isinstance(value, tuple):
        return ", ".join(_text(v) for v in value)
    return str(value).strip("\x00").strip()


def _number(value):
    return f"{float(value):g}"


def format_exif_value(tag, value):
    """
    Render one EXIF value for display.

    Args:
        tag: EXIF tag name (e.g. ``"ExposureTime"``)
        value: raw value as returned by Pillow

    Returns:
        str: display text (empty when the value carries nothing)
    """
    try:
        if tag in DATE_TAGS:
            return datetime.strptime(_text(value), "%Y:%m:%d %H:%M:%S").strftime("%Y-%m-%d %H:%M:%S")
        if tag == "ExposureTime":
            seconds = float(value)
            if 0 < seconds < 1:
                return f"1/{round(1 / seconds)} s"
            return f"{seconds:g} s"
        if tag == "FNumber":
            return f"f/{_number(value)}"
        if tag == "ExposureBiasValue":
            bias = float(value)
            return f"{'+' if bias > 0 else ''}{bias:g} EV"
        if tag == "FocalLength":
            return f"{round(float(value))} mm"
        if tag == "ISOSpeedRatings":
            return f"ISO {_text(value)}"
        if tag == "ExposureProgram":
            return EXPOSURE_PROGRAMS.get(value, _text(value))
        if tag == "MeteringMode":
            return METERING_MODES.get(value, _text(value))
        if tag == "WhiteBalance":
            return "Auto" if value == 0 else "Manual"
        if tag == "Flash":
            return FLASH_MODES.get(value, f"Flash mode {value}")
        if tag in ("XResolution", "YResolution"):
            return f"{_number(value)} dpi"
    except (TypeError, ValueError, ZeroDivisionError) as exc:
        logger.debug(f"EXIF {tag}: showing raw value ({exc})")
    return _text(value)


def _degrees(dms):
    degrees, minutes, seconds = (float(part) for part in dms)
    return degrees + minutes / 60 + seconds / 3600


def format_gps_coordinates(gps):
    """
    Render a GPS IFD as decimal degrees, e.g. ``"48.858370° N, 2.294481° E"``.

    Args:
        gps: mapping of GPS tag name -> raw value

    Returns:
        str | None: None when latitude or longitude is missing
    """
    latitude, longitude = gps.get("GPSLatitude"), gps.get("GPSLongitude")
    if not latitude or not longitude:
        return None
    lat_ref = _text(gps.get("GPSLatitudeRef") or "N")
    lon_ref = _text(gps.get("GPSLongitudeRef") or "E")
    return f"{_degrees(latitude):.6f}° {lat_ref}, {_degrees(longitude):.6f}° {lon_ref}"


def read_exif(file_path):
    """
    Read the display-relevant EXIF tags of an image file.

    Args:
        file_path: path of the image

    Returns:
        dict: friendly tag name -> display text (empty when nothing is found)
    """
    file_path = Path(file_path)

    with Image.open(file_path) as image:
        exif = image.getexif()
        entries = dict(exif)
        # shooting parameters live in the Exif sub-IFD
        entries.update(exif.get_ifd(ExifTags.IFD.Exif))
        gps = {
            ExifTags.GPSTAGS.get(key, key): value
            for key, value in exif.get_ifd(ExifTags.IFD.GPSInfo).items()
        }

    formatted = {}
    for tag_id, value in entries.items():
        tag = ExifTags.TAGS.get(tag_id)
        label = RELEVANT_TAGS.get(tag)
        if label is None:
            continue
        text = format_exif_value(tag, value)
        if text:
            formatted[label] = text

    try:
        coordinates = format_gps_coordinates(gps)
    except (TypeError, ValueError) as exc:
        logger.warning(f"Invalid GPS data in {file_path.name}: {exc}")
        coordinates = None
    if coordinates:
        formatted["GPS Coordinates"] = coordinates

    logger.debug(f"EXIF: {len(formatted)} relevant tags in {file_path.name}")
    return formatted
