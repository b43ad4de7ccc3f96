"""
Builds LargestFilesFinder into a single console exe under dist/.
The report files are written next to the exe at run time.
"""
import os
import shutil
import subprocess

APP_NAME = 'LargestFilesFinder'

def build():
    for folder in ['build', 'dist']:
        if os.path.exists(folder):
            shutil.rmtree(folder)

    subprocess.run([
        'pyinstaller',
        '--onefile',
        '--console',
        '--name', APP_NAME,
        '--hidden-import', 'psutil',
        'main.py'
    ], check=True)

    exe_name = APP_NAME + ('.exe' if os.name == 'nt' else '')
    print(f"Executable: {os.path.join('dist', exe_name)}")

if __name__ == '__main__':
    build()
