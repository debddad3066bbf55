"""
Windows clipboard bridge for pasteVector (WSL only).

From inside WSL the Windows clipboard is reachable through `powershell.exe`.
Each round trip costs seconds, so instead of a list/read dialogue a single
script picks the best representation itself and writes it straight to disk:

1. an SVG clipboard format (Inkscape and friends)
2. SVG markup embedded in the HTML clipboard format
3. the enhanced metafile (ChemDraw), via the managed API and, if that throws,
   via P/Invoke GetEnhMetaFileBits
4. a raster image, saved as PNG

The script reports what it wrote through its exit code, which is decoded into
`BridgeResult` here and never leaves this module as a number.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path

from pastevector.core import T_LIST, T_WINCLIP, process
from pastevector.core.probe import CapabilityProbe
from pastevector.core.storage import is_nonempty_file

from .base import BridgeError

__all__ = [
    "POWERSHELL_CMD",
    "WSLPATH_CMD",
    "BridgeResult",
    "BridgeExport",
    "WindowsBridge",
    "ps_quote",
    "build_export_script",
]

POWERSHELL_CMD = "powershell.exe"
WSLPATH_CMD = "wslpath"


class BridgeResult(enum.Enum):
    VECTOR_WRITTEN = 12
    METAFILE_WRITTEN = 10
    RASTER_WRITTEN = 11
    NOTHING_FOUND = 2

    @classmethod
    def from_exit_code(cls, code: int) -> BridgeResult | None:
        try:
            return cls(code)
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class BridgeExport:
    result: BridgeResult
    path: Path

    @property
    def kind(self) -> str:
        return _KIND[self.result]


_KIND = {
    BridgeResult.VECTOR_WRITTEN: "svg",
    BridgeResult.METAFILE_WRITTEN: "emf",
    BridgeResult.RASTER_WRITTEN: "png",
}


def ps_quote(value: str) -> str:
    """Quote `value` as a PowerShell single-quoted string literal."""
    return "'" + value.replace("'", "''") + "'"


_EXPORT_SCRIPT = r"""
Add-Type -AssemblyName System.Windows.Forms;
Add-Type -AssemblyName System.Drawing;
$do=[System.Windows.Forms.Clipboard]::GetDataObject();
if($do -ne $null) {
  try {
    $fmts=$do.GetFormats();
    $svgFmt=$fmts | Where-Object { $_ -eq 'image/svg+xml' } | Select-Object -First 1;
    if(-not $svgFmt) { $svgFmt=$fmts | Where-Object { $_ -match 'svg' } | Select-Object -First 1; }
    if($svgFmt) {
      $d=$do.GetData($svgFmt);
      if($d -is [string]) { [System.IO.File]::WriteAllText(@SVG@, $d, [System.Text.Encoding]::UTF8); exit 12 }
      if($d -is [byte[]]) { [System.IO.File]::WriteAllBytes(@SVG@, $d); exit 12 }
      if($d -is [System.IO.Stream]) {
        $ms=New-Object System.IO.MemoryStream; $d.CopyTo($ms);
        [System.IO.File]::WriteAllBytes(@SVG@, $ms.ToArray()); exit 12
      }
    }
  } catch { }
  try {
    if($do.GetDataPresent([System.Windows.Forms.DataFormats]::Html)) {
      $html=$do.GetData([System.Windows.Forms.DataFormats]::Html);
      if($html -is [string] -and $html -match '<svg') {
        $start=$html.IndexOf('<svg');
        $end=$html.LastIndexOf('</svg>');
        if($start -ge 0 -and $end -ge 0 -and $end -gt $start) {
          $svg=$html.Substring($start, $end-$start+6);
          [System.IO.File]::WriteAllText(@SVG@, $svg, [System.Text.Encoding]::UTF8); exit 12
        }
      }
    }
  } catch { }
  if($do.GetDataPresent([System.Windows.Forms.DataFormats]::EnhancedMetafile)) {
    try {
      $mf=$do.GetData([System.Windows.Forms.DataFormats]::EnhancedMetafile);
      if($mf -ne $null) {
        $mf.Save(@EMF@, [System.Drawing.Imaging.ImageFormat]::Emf);
        exit 10
      }
    } catch { }
    try {
      Add-Type -Language CSharp -TypeDefinition @'
using System;
using System.IO;
using System.Runtime.InteropServices;
public static class ClipEmf {
  const uint CF_ENHMETAFILE = 14;
  [DllImport("user32.dll", ExactSpelling=true)] static extern bool OpenClipboard(IntPtr hWndNewOwner);
  [DllImport("user32.dll", ExactSpelling=true)] static extern bool CloseClipboard();
  [DllImport("user32.dll", ExactSpelling=true)] static extern bool IsClipboardFormatAvailable(uint format);
  [DllImport("user32.dll", ExactSpelling=true)] static extern IntPtr GetClipboardData(uint format);
  [DllImport("gdi32.dll",  ExactSpelling=true)] static extern uint GetEnhMetaFileBits(IntPtr hemf, uint cbBuffer, byte[] lpbBuffer);
  public static int Save(string path) {
    if (!IsClipboardFormatAvailable(CF_ENHMETAFILE)) return 2;
    if (!OpenClipboard(IntPtr.Zero)) return 3;
    IntPtr hemf = GetClipboardData(CF_ENHMETAFILE);
    CloseClipboard();
    if (hemf == IntPtr.Zero) return 4;
    uint size = GetEnhMetaFileBits(hemf, 0, null);
    if (size == 0) return 5;
    byte[] buf = new byte[size];
    uint got = GetEnhMetaFileBits(hemf, size, buf);
    if (got != size) return 6;
    File.WriteAllBytes(path, buf);
    return 0;
  }
}
'@;
      $rc=[ClipEmf]::Save(@EMF@);
      if($rc -eq 0) { exit 10 }
    } catch { }
  }
}
$img=[System.Windows.Forms.Clipboard]::GetImage();
if($img -ne $null) {
  $img.Save(@PNG@, [System.Drawing.Imaging.ImageFormat]::Png);
  exit 11
}
exit 2
"""


def build_export_script(svg_win: str, png_win: str, emf_win: str) -> str:
    """
    Fill the export script with Windows-side output paths.
    """
    return (
        _EXPORT_SCRIPT.strip()
        .replace("@SVG@", ps_quote(svg_win))
        .replace("@PNG@", ps_quote(png_win))
        .replace("@EMF@", ps_quote(emf_win))
    )


class WindowsBridge:
    name = "windows"

    def __init__(self, probe: CapabilityProbe) -> None:
        self.probe = probe

    @classmethod
    def is_available(cls, probe: CapabilityProbe) -> bool:
        return (
            probe.is_wsl()
            and probe.command_exists(POWERSHELL_CMD)
            and probe.command_exists(WSLPATH_CMD)
        )

    def to_windows_path(self, linux_path: Path) -> str | None:
        r = process.run_text(WSLPATH_CMD, ["-w", str(linux_path)], T_LIST)
        out = r.stdout.strip()
        if not r.ok or not out:
            logging.debug("wslpath failed for %s: %s", linux_path, r.stderr.strip())
            return None
        return out

    def export(self, svg_path: Path, png_path: Path, emf_path: Path) -> BridgeExport | None:
        """
        Ask Windows to write its best clipboard representation.

        Args:
            svg_path: Destination if SVG is found.
            png_path: Destination if only a raster image is found.
            emf_path: Scratch destination for a metafile (caller converts it).

        Returns:
            BridgeExport for a verified non-empty file, or None when nothing
            usable was found (or the bridge is unavailable).

        Raises:
            BridgeError: On any exit code outside the protocol.
        """
        if not self.is_available(self.probe):
            return None

        # wslpath needs the parent directories to exist.
        for p in (svg_path, png_path, emf_path):
            p.parent.mkdir(parents=True, exist_ok=True)

        win_paths = [self.to_windows_path(p) for p in (svg_path, png_path, emf_path)]
        if not all(win_paths):
            return None
        svg_win, png_win, emf_win = win_paths

        script = build_export_script(svg_win, png_win, emf_win)
        r = process.run_text(POWERSHELL_CMD, ["-NoProfile", "-STA", "-Command", script], T_WINCLIP)

        result = BridgeResult.from_exit_code(r.code)
        if result is None:
            raise BridgeError(f"Windows clipboard export failed.\n{r.details()}".strip())
        if result is BridgeResult.NOTHING_FOUND:
            logging.debug("Windows clipboard holds nothing usable")
            return None

        path = {
            BridgeResult.VECTOR_WRITTEN: svg_path,
            BridgeResult.METAFILE_WRITTEN: emf_path,
            BridgeResult.RASTER_WRITTEN: png_path,
        }[result]
        if not is_nonempty_file(path):
            logging.debug("Bridge reported %s but %s is missing/empty", result.name, path)
            return None
        return BridgeExport(result=result, path=path)
