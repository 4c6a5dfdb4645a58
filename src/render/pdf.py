"""
PDF 변환: LibreOffice (soffice) headless 호출.

흐름:
- 입력 확인 → 출력 디렉터리 준비 → 이전 결과물 제거
- soffice --headless --norestore --convert-to pdf[:filter] --outdir <dir> <input>
- 종료 코드는 기록만 함, 성공 판정은 결과 파일 존재 + 크기 > 0
- 파일 시스템 반영 지연을 고려해 grace window 동안 결과 파일을 polling
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Any

from src.domain.errors import ErrorCodes, PipelineError

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_FILTERS = {
    ".docx": "writer_pdf_Export",
}


class PdfConverter:
    """
    문서 → PDF 변환기.

    요청마다 soffice 자식 프로세스를 하나 실행하고 완료를 기다림.

    Usage:
        converter = PdfConverter(Path("output-generated/pdf"))
        pdf_path = await converter.convert(Path("output-generated/docx/generated-1.docx"))
    """

    def __init__(
        self,
        output_dir: Path,
        executable: str = "soffice",
        timeout_seconds: float = 120.0,
        grace_seconds: float = 1.0,
        export_filters: dict[str, str] | None = None,
        poll_interval: float = 0.1,
    ):
        self.output_dir = output_dir
        self.executable = executable
        self.timeout_seconds = timeout_seconds
        self.grace_seconds = grace_seconds
        self.export_filters = (
            dict(DEFAULT_EXPORT_FILTERS) if export_filters is None else export_filters
        )
        self.poll_interval = poll_interval

    @classmethod
    def from_config(cls, config: dict[str, Any], output_dir: Path) -> "PdfConverter":
        """default.yaml의 converter 섹션에서 로드."""
        converter = config.get("converter", {}) or {}
        filters = converter.get("filters")
        return cls(
            output_dir=output_dir,
            executable=str(converter.get("executable", "soffice")),
            timeout_seconds=float(converter.get("timeout_seconds", 120)),
            grace_seconds=float(converter.get("grace_seconds", 1.0)),
            export_filters=dict(filters) if filters is not None else None,
        )

    def expected_output_path(self, input_path: Path) -> Path:
        """soffice가 만드는 결과 파일 경로: <outdir>/<입력 stem>.pdf"""
        return self.output_dir.resolve() / f"{input_path.stem}.pdf"

    def build_command(self, input_path: Path) -> list[str]:
        """soffice 실행 인자 (shell 미사용)."""
        export_filter = self.export_filters.get(input_path.suffix.lower())
        target = f"pdf:{export_filter}" if export_filter else "pdf"
        return [
            self.executable,
            "--headless",
            "--norestore",
            "--convert-to",
            target,
            "--outdir",
            str(self.output_dir.resolve()),
            str(input_path.resolve()),
        ]

    async def convert(self, input_path: Path) -> Path:
        """
        입력 문서를 PDF로 변환.

        Args:
            input_path: DOCX/XLSX 파일 경로

        Returns:
            생성된 PDF 경로

        Raises:
            PipelineError: CONVERSION_FAILED
        """
        if not input_path.is_file():
            raise PipelineError(
                ErrorCodes.CONVERSION_FAILED,
                "Input file not found",
                input=str(input_path),
            )

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PipelineError(
                ErrorCodes.CONVERSION_FAILED,
                "Output directory could not be created",
                output_dir=str(self.output_dir),
                error=str(e),
            ) from e

        expected = self.expected_output_path(input_path)
        # 이전 실행의 결과물을 새 결과로 오인하지 않도록 제거
        expected.unlink(missing_ok=True)

        command = self.build_command(input_path)
        logger.info(f"Converting {input_path.name} to PDF: {' '.join(command)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise PipelineError(
                ErrorCodes.CONVERSION_FAILED,
                "Converter could not be started",
                executable=self.executable,
                error=str(e),
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise PipelineError(
                ErrorCodes.CONVERSION_FAILED,
                "Converter timed out",
                input=str(input_path),
                timeout_seconds=self.timeout_seconds,
            ) from None

        logger.info(f"Converter exited with code {process.returncode}")
        if stdout:
            logger.debug(f"Converter stdout: {stdout.decode(errors='replace').strip()}")
        if stderr:
            logger.warning(f"Converter stderr: {stderr.decode(errors='replace').strip()}")

        if not await self._wait_for_output(expected):
            raise PipelineError(
                ErrorCodes.CONVERSION_FAILED,
                "PDF file was not created after conversion",
                expected=str(expected),
                returncode=process.returncode,
            )

        logger.info(f"PDF conversion completed: {expected.name}")
        return expected

    async def _wait_for_output(self, path: Path) -> bool:
        """grace window 안에 결과 파일이 생기고 비어 있지 않으면 True."""
        deadline = time.monotonic() + self.grace_seconds
        while True:
            if path.is_file() and path.stat().st_size > 0:
                return True
            if time.monotonic() >= deadline:
                return False
            await asyncio.sleep(self.poll_interval)
