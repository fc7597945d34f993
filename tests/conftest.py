import logging
from pathlib import Path

import numpy as np
import pytest
from PIL import Image
from pydicom.dataset import Dataset, FileMetaDataset
from pydicom.uid import ExplicitVRLittleEndian, SecondaryCaptureImageStorage, generate_uid

# Keep pipeline warnings out of the test output
logging.disable(logging.CRITICAL)


@pytest.fixture
def write_text(tmp_path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def write_png(tmp_path):
    def _write(name: str, pixels: np.ndarray) -> Path:
        path = tmp_path / name
        Image.fromarray(pixels).save(path, format="PNG")
        return path
    return _write


@pytest.fixture
def write_dicom(tmp_path):
    def _write(name: str, pixels: np.ndarray, bits: int = 8) -> Path:
        samples = 3 if pixels.ndim == 3 else 1

        meta = FileMetaDataset()
        meta.MediaStorageSOPClassUID = SecondaryCaptureImageStorage
        meta.MediaStorageSOPInstanceUID = generate_uid()
        meta.TransferSyntaxUID = ExplicitVRLittleEndian

        ds = Dataset()
        ds.file_meta = meta
        ds.SOPClassUID = SecondaryCaptureImageStorage
        ds.SOPInstanceUID = meta.MediaStorageSOPInstanceUID
        ds.Modality = "OT"
        ds.Rows, ds.Columns = pixels.shape[:2]
        ds.SamplesPerPixel = samples
        ds.PhotometricInterpretation = "RGB" if samples == 3 else "MONOCHROME2"
        if samples == 3:
            ds.PlanarConfiguration = 0
        ds.BitsAllocated = bits
        ds.BitsStored = bits
        ds.HighBit = bits - 1
        ds.PixelRepresentation = 0
        dtype = np.uint8 if bits == 8 else np.dtype("<u2")
        ds.PixelData = np.ascontiguousarray(pixels, dtype=dtype).tobytes()

        path = tmp_path / name
        ds.save_as(path, enforce_file_format=True)
        return path
    return _write
