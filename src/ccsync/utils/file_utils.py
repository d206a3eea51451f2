"""File utility functions."""

import hashlib
from pathlib import Path
from typing import Union

class FileHelper:
    """Helper class for file operations."""
    
    # OS metadata files never worth backing up
    JUNK_FILE_NAMES = {'.ds_store', 'thumbs.db'}
    
    @staticmethod
    def format_file_size(size_bytes: float) -> str:
        """Format file size in human readable format.
        
        Args:
            size_bytes: Size in bytes
            
        Returns:
            Formatted size string
        """
        if size_bytes == 0:
            return "0 B"
        
        size_names = ["B", "KB", "MB", "GB", "TB", "PB"]
        i = 0
        
        while size_bytes >= 1024 and i < len(size_names) - 1:
            size_bytes /= 1024.0
            i += 1
        
        return f"{size_bytes:.1f} {size_names[i]}"
    
    @staticmethod
    def is_junk_file(file_path: Path) -> bool:
        """Check if a file is OS metadata (Finder/Explorer caches)."""
        return file_path.name.lower() in FileHelper.JUNK_FILE_NAMES
    
    @staticmethod
    def files_identical(source: Path, destination: Path) -> bool:
        """Check whether two files hold byte-identical content.
        
        A destination that is missing or cannot be read is reported as
        different, so the caller treats it as needing an update. Errors
        reading the source propagate.
        
        Args:
            source: File being synced
            destination: Current copy in the destination tree
            
        Returns:
            True if both files have the same content
        """
        source_size = source.stat().st_size
        try:
            if not destination.is_file():
                return False
            if destination.stat().st_size != source_size:
                return False
            dest_hash = calculate_file_hash(destination)
        except OSError:
            return False
        
        return calculate_file_hash(source) == dest_hash
    
    @staticmethod
    def reroot(file_path: Union[str, Path], source_root: Union[str, Path],
               destination_root: Union[str, Path]) -> Path:
        """Map a file under source_root to the same relative location under destination_root.
        
        Args:
            file_path: Full file path
            source_root: Root the file was discovered under
            destination_root: Root to map onto
            
        Returns:
            Destination path
            
        Raises:
            ValueError: If file_path is not inside source_root
        """
        relative = Path(file_path).relative_to(Path(source_root))
        return Path(destination_root) / relative

def calculate_file_hash(file_path: Path, chunk_size: int = 8192) -> str:
    """Calculate SHA-256 hash of a file.
    
    Args:
        file_path: Path to the file
        chunk_size: Size of chunks to read
        
    Returns:
        Hash as hex string
    """
    digest = hashlib.sha256()
    
    with open(file_path, 'rb') as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    
    return digest.hexdigest()
