"""mzkit"""

from datetime import datetime


__version__ = "0.2.0"
__year__ = datetime.now().year
__authors__ = ["Steinar Gijze"]
__organization__ = (
    "Center for Proteomics and Metabolomics, "
    "Leiden University Medical Center, "
    "The Netherlands"
)
