"""
Worksheet assembler
Copies a template worksheet into another workbook, value and style,
without sharing any style object with the source
"""

import logging
from copy import copy, deepcopy

from openpyxl.cell.cell import MergedCell

logger = logging.getLogger(__name__)

_PAGE_SETUP_FIELDS = (
    'orientation', 'paperSize', 'scale', 'fitToHeight', 'fitToWidth',
    'firstPageNumber', 'useFirstPageNumber', 'paperHeight', 'paperWidth',
    'pageOrder', 'usePrinterDefaults', 'blackAndWhite', 'draft',
    'cellComments', 'errors', 'horizontalDpi', 'verticalDpi', 'copies',
)

def _copy_sheet_settings(source, target):
    target.sheet_format = deepcopy(source.sheet_format)
    target.sheet_properties = deepcopy(source.sheet_properties)
    target.page_margins = copy(source.page_margins)
    target.print_options = copy(source.print_options)
    for field_name in _PAGE_SETUP_FIELDS:
        setattr(target.page_setup, field_name, getattr(source.page_setup, field_name))

    view = source.sheet_view
    target.sheet_view.rightToLeft = view.rightToLeft
    target.sheet_view.showGridLines = view.showGridLines
    target.sheet_view.zoomScale = view.zoomScale
    target.sheet_view.view = view.view
    target.freeze_panes = source.freeze_panes

def _copy_dimensions(source, target):
    for key, dim in source.column_dimensions.items():
        target_dim = target.column_dimensions[key]
        target_dim.width = dim.width
        target_dim.hidden = dim.hidden
        target_dim.min = dim.min
        target_dim.max = dim.max

    for index, dim in source.row_dimensions.items():
        if dim.height is not None:
            target.row_dimensions[index].height = dim.height
        if dim.hidden:
            target.row_dimensions[index].hidden = True

def _resolved_value(cell, values_source):
    if cell.data_type != 'f':
        return cell.value
    # Formulas become their cached result; without a data-only copy there is none
    if values_source is None:
        return None
    return values_source.cell(row=cell.row, column=cell.column).value

def _copy_cells(source, target, values_source):
    for row in source.iter_rows():
        for cell in row:
            if isinstance(cell, MergedCell):
                continue
            target_cell = target.cell(row=cell.row, column=cell.column)
            target_cell.value = _resolved_value(cell, values_source)
            if cell.has_style:
                target_cell.font = copy(cell.font)
                target_cell.alignment = copy(cell.alignment)
                target_cell.border = copy(cell.border)
                target_cell.fill = copy(cell.fill)
                target_cell.number_format = cell.number_format
                target_cell.protection = copy(cell.protection)

def _copy_merges(source, target):
    for merged_range in list(source.merged_cells.ranges):
        try:
            target.merge_cells(str(merged_range))
        except ValueError as e:
            logger.debug("Skipping merge %s on '%s': %s", merged_range, target.title, e)

def clone_worksheet(source, target_workbook, title, values_source=None):
    """
    Copy ``source`` into ``target_workbook`` as a new sheet named ``title``.

    ``values_source`` is the same sheet loaded with ``data_only=True``;
    when given, formula cells are written as their cached values.
    """
    target = target_workbook.create_sheet(title=title)
    _copy_sheet_settings(source, target)
    _copy_dimensions(source, target)
    _copy_cells(source, target, values_source)
    _copy_merges(source, target)
    return target
