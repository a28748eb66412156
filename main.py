# -*- coding: utf-8 -*-
"""
图片水印桌面预览程序
功能:为单张照片添加文字或图片水印,实时预览并导出为 JPEG / PNG / WEBP
合成逻辑与 HTTP 服务共用 watermarker.pipeline,预览与导出结果一致
"""

# 标准库导入
import logging
import sys
from pathlib import Path

# 第三方库导入
from PIL.ImageQt import ImageQt
from PySide6.QtCore import QThread, Qt, Signal
from PySide6.QtGui import QColor, QImage, QPixmap
from PySide6.QtWidgets import (
    QApplication, QCheckBox, QColorDialog, QComboBox, QFileDialog, QGroupBox,
    QHBoxLayout, QLabel, QLineEdit, QMessageBox, QPushButton, QSlider,
    QSpinBox, QVBoxLayout, QWidget
)

# 本地模块导入
from watermarker.config import configure_logging
from watermarker.errors import WatermarkError
from watermarker.image_io import decode_image
from watermarker.options import (
    DEFAULT_FONT_FAMILY, Gravity, ImageSource, OutputFormat, Position,
    TextSource, WatermarkSpec
)
from watermarker.pipeline import compose
from watermarker.preview import PREVIEW_MAX_WIDTH, downscale, export_image
from watermarker.text import escape_markup

# 全局常量
APP_NAME = "WatermarkerPy - 图片水印预览"
FONT_OPTIONS = [
    ("系统默认", DEFAULT_FONT_FAMILY),
    ("Sans", "sans-serif"),
    ("Serif", "Georgia, 'Times New Roman', serif"),
    ("Mono", "monospace"),
]

logger = logging.getLogger(__name__)


def pil_to_qpixmap(img):
    """
    将PIL图像转换为Qt的QPixmap对象

    参数:
        img: PIL.Image对象

    返回:
        QPixmap: 转换后的QPixmap对象
    """
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    qim = ImageQt(img)
    return QPixmap.fromImage(QImage(qim))


class ExportWorker(QThread):
    """
    导出工作线程类

    在后台完成全尺寸合成与编码,避免阻塞UI线程

    信号:
        finished_signal: (是否成功, 消息)
    """
    finished_signal = Signal(bool, str)

    def __init__(self, base, spec, output_format, dst_path):
        super().__init__()
        self.base = base
        self.spec = spec
        self.output_format = output_format
        self.dst_path = dst_path

    def run(self):
        try:
            result = compose(self.base, self.spec)
            data = export_image(result, self.output_format)
            Path(self.dst_path).write_bytes(data)
        except (WatermarkError, OSError) as e:
            logger.warning("export failed: %s", e)
            self.finished_signal.emit(False, str(e))
            return
        except Exception as e:
            # 线程内的异常必须转成信号,否则导出按钮无法恢复
            logger.exception("unexpected export failure")
            self.finished_signal.emit(False, f"InternalError: {e}")
            return
        self.finished_signal.emit(True, self.dst_path)


class MainWindow(QWidget):
    """
    图片水印预览主窗口

    左侧为预览区,右侧为水印参数面板;任何参数变化都会重新合成预览
    """
    def __init__(self):
        super().__init__()
        self.setWindowTitle(APP_NAME)
        self.resize(1200, 760)

        # 数据模型
        self.base_image = None        # 已解码的底图 (PIL.Image)
        self.photo_path = None
        self.watermark_bytes = None   # 水印图片原始数据
        self.font_color = QColor(255, 255, 255)
        self.worker = None

        self.setup_ui()

    def setup_ui(self):
        layout = QHBoxLayout(self)

        self.preview_label = QLabel("请先打开一张照片")
        self.preview_label.setAlignment(Qt.AlignCenter)
        self.preview_label.setMinimumWidth(PREVIEW_MAX_WIDTH)
        layout.addWidget(self.preview_label, 1)

        panel = QVBoxLayout()
        panel.addWidget(self.create_source_group())
        panel.addWidget(self.create_text_group())
        panel.addWidget(self.create_position_group())
        panel.addWidget(self.create_export_group())
        panel.addStretch()
        self.status_label = QLabel()
        self.status_label.setTextFormat(Qt.RichText)
        self.status_label.setWordWrap(True)
        panel.addWidget(self.status_label)
        layout.addLayout(panel)

    def create_source_group(self):
        group = QGroupBox("图片")
        box = QVBoxLayout(group)
        open_btn = QPushButton("打开照片…")
        open_btn.clicked.connect(self.on_open_photo)
        wm_btn = QPushButton("选择水印图片…")
        wm_btn.clicked.connect(self.on_open_watermark)
        clear_btn = QPushButton("清除水印图片")
        clear_btn.clicked.connect(self.on_clear_watermark)
        for w in (open_btn, wm_btn, clear_btn):
            box.addWidget(w)
        return group

    def create_text_group(self):
        group = QGroupBox("文字水印")
        box = QVBoxLayout(group)

        self.text_input = QLineEdit("© 2025 MyBrand")
        self.text_input.textChanged.connect(self.refresh_preview)
        box.addWidget(self.text_input)

        self.font_combo = QComboBox()
        for label, family in FONT_OPTIONS:
            self.font_combo.addItem(label, family)
        self.font_combo.currentIndexChanged.connect(self.refresh_preview)
        box.addWidget(self.font_combo)

        row = QHBoxLayout()
        self.fontsize_spin = QSpinBox()
        self.fontsize_spin.setRange(1, 1000)
        self.fontsize_spin.setValue(48)
        self.fontsize_spin.valueChanged.connect(self.refresh_preview)
        row.addWidget(QLabel("字号"))
        row.addWidget(self.fontsize_spin)
        color_btn = QPushButton("颜色")
        color_btn.clicked.connect(self.choose_color)
        row.addWidget(color_btn)
        box.addLayout(row)

        row = QHBoxLayout()
        self.opacity_slider = QSlider(Qt.Horizontal)
        self.opacity_slider.setRange(0, 100)
        self.opacity_slider.setValue(80)
        self.opacity_slider.valueChanged.connect(self.refresh_preview)
        row.addWidget(QLabel("不透明度"))
        row.addWidget(self.opacity_slider)
        box.addLayout(row)
        return group

    def create_position_group(self):
        group = QGroupBox("位置与尺寸")
        box = QVBoxLayout(group)

        self.pos_combo = QComboBox()
        for g in Gravity:
            self.pos_combo.addItem(g.value, g.value)
        self.pos_combo.setCurrentIndex(list(Gravity).index(Gravity.SOUTHEAST))
        self.pos_combo.currentIndexChanged.connect(self.refresh_preview)
        box.addWidget(self.pos_combo)

        row = QHBoxLayout()
        self.explicit_cb = QCheckBox("指定坐标")
        self.explicit_cb.toggled.connect(self.refresh_preview)
        self.x_spin = QSpinBox()
        self.y_spin = QSpinBox()
        for spin in (self.x_spin, self.y_spin):
            spin.setRange(-100000, 100000)
            spin.valueChanged.connect(self.refresh_preview)
        row.addWidget(self.explicit_cb)
        row.addWidget(self.x_spin)
        row.addWidget(self.y_spin)
        box.addLayout(row)

        # 0 表示不限制
        row = QHBoxLayout()
        self.width_spin = QSpinBox()
        self.height_spin = QSpinBox()
        for spin in (self.width_spin, self.height_spin):
            spin.setRange(0, 100000)
            spin.setSpecialValueText("自动")
            spin.valueChanged.connect(self.refresh_preview)
        row.addWidget(QLabel("宽"))
        row.addWidget(self.width_spin)
        row.addWidget(QLabel("高"))
        row.addWidget(self.height_spin)
        box.addLayout(row)
        return group

    def create_export_group(self):
        group = QGroupBox("导出")
        box = QHBoxLayout(group)
        self.format_combo = QComboBox()
        for fmt in OutputFormat:
            self.format_combo.addItem(fmt.subtype, fmt.subtype)
        box.addWidget(self.format_combo)
        self.export_btn = QPushButton("导出…")
        self.export_btn.clicked.connect(self.on_export)
        box.addWidget(self.export_btn)
        return group

    def collect_spec(self):
        """根据当前界面参数构造 WatermarkSpec"""
        text = TextSource(
            content=self.text_input.text(),
            font_family=self.font_combo.currentData(),
            font_size=self.fontsize_spin.value(),
            color=self.font_color.name(),
        )
        image = ImageSource(self.watermark_bytes) if self.watermark_bytes else None
        if self.explicit_cb.isChecked():
            placement = Position(self.x_spin.value(), self.y_spin.value())
        else:
            placement = Gravity(self.pos_combo.currentData())
        return WatermarkSpec(
            text=text,
            image=image,
            opacity=self.opacity_slider.value() / 100.0,
            width=self.width_spin.value() or None,
            height=self.height_spin.value() or None,
            placement=placement,
        )

    def show_status(self, message, error=False):
        color = "#d33" if error else "#888"
        self.status_label.setText(f'<span style="color:{color}">{escape_markup(message)}</span>')

    def refresh_preview(self, *_):
        """全尺寸合成后只缩放一次用于显示"""
        if self.base_image is None:
            return
        try:
            result = compose(self.base_image, self.collect_spec())
        except WatermarkError as e:
            self.show_status(f"{e.kind}: {e}", error=True)
            return
        target_w = min(self.preview_label.width() or PREVIEW_MAX_WIDTH, PREVIEW_MAX_WIDTH)
        self.preview_label.setPixmap(pil_to_qpixmap(downscale(result, target_w)))
        self.show_status(f"{self.text_input.text()} · {self.base_image.width}x{self.base_image.height}")

    def choose_color(self):
        color = QColorDialog.getColor(self.font_color, self, "选择文字颜色")
        if color.isValid():
            self.font_color = color
            self.refresh_preview()

    def _read_image_file(self, title):
        path, _ = QFileDialog.getOpenFileName(
            self, title, "", "Images (*.png *.jpg *.jpeg *.webp *.bmp *.tif *.tiff)")
        if not path:
            return None, None
        try:
            return path, Path(path).read_bytes()
        except OSError as e:
            QMessageBox.warning(self, "错误", f"无法读取文件: {e}")
            return None, None

    def on_open_photo(self):
        path, data = self._read_image_file("打开照片")
        if data is None:
            return
        try:
            self.base_image = decode_image(data, "photo")
        except WatermarkError as e:
            QMessageBox.warning(self, "错误", str(e))
            return
        self.photo_path = path
        self.refresh_preview()

    def on_open_watermark(self):
        _, data = self._read_image_file("选择水印图片")
        if data is not None:
            self.watermark_bytes = data
            self.refresh_preview()

    def on_clear_watermark(self):
        self.watermark_bytes = None
        self.refresh_preview()

    def on_export(self):
        """导出水印图片"""
        if self.base_image is None:
            QMessageBox.warning(self, "提示", "请先打开一张照片")
            return
        fmt = OutputFormat.parse(self.format_combo.currentData())
        default_name = f"{Path(self.photo_path).stem}_watermarked.{fmt.extension}"
        dst_path, _ = QFileDialog.getSaveFileName(self, "导出", default_name)
        if not dst_path:
            return

        self.export_btn.setEnabled(False)
        self.worker = ExportWorker(self.base_image, self.collect_spec(), fmt, dst_path)
        self.worker.finished_signal.connect(self.on_export_finished)
        self.worker.start()

    def on_export_finished(self, success, message):
        self.export_btn.setEnabled(True)
        if success:
            QMessageBox.information(self, "导出完成", f"已保存: {message}")
        else:
            QMessageBox.warning(self, "导出失败", message)


if __name__ == "__main__":
    configure_logging()
    app = QApplication(sys.argv)
    w = MainWindow()
    w.show()
    sys.exit(app.exec())
