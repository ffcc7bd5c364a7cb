import os
import logging
from typing import Optional
from uuid import uuid4

from excel_analytics import config
from excel_analytics.database.store import DocumentStore
from excel_analytics.errors import PersistenceError, ValidationError
from excel_analytics.models.excel_data import ExcelFileDocument, NormalizedPayload, UploadedFile
from excel_analytics.services import decoder, normalizer

logger = logging.getLogger(__name__)


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


class ExcelService:
    @staticmethod
    def validate_upload(upload: Optional[UploadedFile]) -> str:
        """
        Check presence, extension and size of an upload

        Returns:
            The lower-cased extension of the file
        """
        if upload is None or not upload.filename:
            raise ValidationError("No file uploaded")

        ext = file_extension(upload.filename)
        allowed = config.allowed_extensions()
        if ext not in allowed:
            if config.ALLOW_CSV_UPLOADS:
                raise ValidationError("Please upload Excel or CSV files only (.xlsx, .xls or .csv)")
            raise ValidationError("Please upload Excel files only (.xlsx or .xls)")

        if upload.size > config.MAX_UPLOAD_BYTES:
            raise ValidationError(f"File too large (limit is {config.MAX_UPLOAD_BYTES} bytes)")
        return ext

    @staticmethod
    def process_excel_bytes(content: bytes, extension: str) -> NormalizedPayload:
        """
        Decode and normalize spreadsheet bytes

        Args:
            content: Raw file bytes
            extension: Declared file extension

        Returns:
            NormalizedPayload built from the first sheet
        """
        workbook = decoder.decode(content, extension)
        if len(workbook.sheets) > 1:
            logger.info(f"Ignoring {len(workbook.sheets) - 1} extra sheet(s): {workbook.sheet_names[1:]}")
        return normalizer.normalize(workbook)

    @staticmethod
    def save_raw_file(upload: UploadedFile) -> str:
        """Write the upload to UPLOAD_DIR and return its path"""
        os.makedirs(config.UPLOAD_DIR, exist_ok=True)
        name = os.path.basename(upload.filename)
        path = os.path.join(config.UPLOAD_DIR, f"{uuid4()}_{name}")
        with open(path, "wb") as buffer:
            buffer.write(upload.content)
        return path

    @staticmethod
    def remove_raw_file(document: ExcelFileDocument) -> bool:
        """Delete the raw upload behind a stored document, if it is still on disk"""
        if not document.fileRef or not os.path.exists(document.fileRef):
            return False
        os.remove(document.fileRef)
        logger.info(f"Removed raw file {document.fileRef}")
        return True

    @staticmethod
    def ingest(
        upload: Optional[UploadedFile],
        store: DocumentStore,
        owner_id: Optional[str] = None,
    ) -> ExcelFileDocument:
        """
        Run an upload through validation, decoding, normalization and storage

        Args:
            upload: The uploaded file
            store: Storage capability; NullDocumentStore for anonymous uploads
            owner_id: Identity the upload belongs to (authenticated variant)

        Returns:
            The document describing the upload; it carries an id only when
            the store persisted it
        """
        ext = ExcelService.validate_upload(upload)
        logger.info(f"Processing upload {upload.filename} ({upload.size} bytes)")

        payload = ExcelService.process_excel_bytes(upload.content, ext)
        document = ExcelFileDocument(
            filename=upload.filename,
            originalName=upload.filename,
            userId=owner_id,
            columns=payload.columns,
            data=payload.data,
            rowCount=payload.rowCount,
        )

        if not store.persists:
            return document

        file_ref = None
        try:
            file_ref = ExcelService.save_raw_file(upload)
            document = document.model_copy(update={
                "filename": os.path.basename(file_ref),
                "fileRef": file_ref,
            })
            stored = store.insert_file(document)
        except (OSError, PersistenceError) as e:
            logger.error(f"Failed to persist upload {upload.filename}: {e}")
            if file_ref and os.path.exists(file_ref):
                os.remove(file_ref)
            if isinstance(e, PersistenceError):
                raise
            raise PersistenceError("Could not store the uploaded file") from e

        logger.info(f"Stored upload {stored.id} for user {owner_id}")
        return stored
